"""Console progress for the per-marker counting loop."""

import sys
from collections.abc import Iterable, Iterator

import progressbar


def progress_iterator(
    iterable: Iterable, total: int, desc: str = "", enabled: bool = True
) -> Iterator:
    """Yield from ``iterable`` while drawing a progressbar2 bar on stdout.

    The bar is finished however the loop ends (exhaustion, break or
    exception), so the terminal is left on a clean line.

    Args:
        iterable: Items to yield.
        total: Expected number of items.
        desc: Label shown before the counter.
        enabled: When False (or ``total`` is 0) items pass through unchanged.
    """
    if not enabled or total <= 0:
        yield from iterable
        return

    label = f"{desc}: " if desc else ""
    bar = progressbar.ProgressBar(
        max_value=total,
        widgets=[
            label,
            progressbar.SimpleProgress(),
            " ",
            progressbar.Bar(marker="#"),
            " ",
            progressbar.AdaptiveETA(),
        ],
        fd=sys.stdout,
    )
    bar.start()
    try:
        for done, item in enumerate(iterable, start=1):
            yield item
            bar.update(done)
    finally:
        bar.finish()
