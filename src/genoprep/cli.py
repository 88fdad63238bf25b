"""genoprep command-line interface.

This module provides a Typer-based CLI with GEMMA-style single-dash flags
(-bfile, -o, -outdir) for consolidating PLINK data, counting raw genotypes
and loading kinship matrices.
"""

import sys
import time
from pathlib import Path
from typing import Annotated

import numpy as np
import typer

import genoprep
from genoprep.consolidator import (
    CONSOLIDATE_OK,
    CaseControl,
    DataConsolidator,
    Sex,
)
from genoprep.core import ConsolidationConfig, GenotypeCounter, OutputConfig, ParRegion
from genoprep.core.jax_config import configure_jax, get_jax_info
from genoprep.core.matrix import LabeledMatrix
from genoprep.core.progress import progress_iterator
from genoprep.core.snp_filter import compute_hwe_pvalues, count_genotype_classes
from genoprep.io import (
    load_plink_binary,
    read_covariate_file,
    write_genotype_counts,
    write_labeled_matrix,
    write_sample_labels,
)
from genoprep.kinship import KinshipKind, write_eigen_files
from genoprep.utils import setup_logging, write_run_log

app = typer.Typer(
    name="genoprep",
    help="genoprep: consolidate genotype, phenotype and covariate data for GWAS.",
    add_completion=False,
)

# Set by the main callback; commands read it through _get_config
_global_config: OutputConfig | None = None

# -stratum name -> (sex, case/control) filter for count_raw_genotype
STRATA = {
    "all": (Sex.ANY, CaseControl.ANY),
    "case": (Sex.ANY, CaseControl.CASE),
    "control": (Sex.ANY, CaseControl.CONTROL),
    "male": (Sex.MALE, CaseControl.ANY),
    "female": (Sex.FEMALE, CaseControl.ANY),
    "female_case": (Sex.FEMALE, CaseControl.CASE),
    "female_control": (Sex.FEMALE, CaseControl.CONTROL),
}


def version_callback(value: bool) -> None:
    if value:
        info = get_jax_info()
        typer.echo(f"genoprep version {genoprep.__version__}")
        typer.echo(f"JAX backend: {info['backend']} (JAX {info['version']})")
        raise typer.Exit()


def _fail(message: str) -> None:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(code=1)


def _get_config() -> OutputConfig:
    global _global_config
    if _global_config is None:
        _global_config = OutputConfig()
    return _global_config


def _require_bfile(bfile: Path) -> None:
    for ext in (".bed", ".bim", ".fam"):
        path = Path(f"{bfile}{ext}")
        if not path.exists():
            _fail(f"PLINK {ext} file not found: {path}")


def _load_plink(bfile: Path):
    _require_bfile(bfile)
    typer.echo(f"Reading {bfile}.bed/.bim/.fam")
    try:
        plink_data = load_plink_binary(bfile)
    except (OSError, ValueError) as e:
        _fail(f"could not read PLINK data: {e}")
    typer.echo(f"{plink_data.n_samples} samples x {plink_data.n_snps} markers")
    return plink_data


@app.callback()
def main(
    outdir: Annotated[
        Path,
        typer.Option("-outdir", help="Output directory"),
    ] = Path("output"),
    output: Annotated[
        str,
        typer.Option("-o", help="Output file prefix"),
    ] = "result",
    verbose: Annotated[
        bool,
        typer.Option("-v", "--verbose", help="Verbose output"),
    ] = False,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = None,
) -> None:
    """genoprep: prepare genotype, phenotype and covariate data for GWAS.

    Missing genotype calls are imputed or their samples dropped while the
    phenotype, covariates and sample labels stay row-aligned.
    """
    global _global_config
    _global_config = OutputConfig(outdir=outdir, prefix=output, verbose=verbose)
    setup_logging(verbose=verbose)


@app.command("consolidate")
def consolidate_command(
    bfile: Annotated[
        Path,
        typer.Option("-bfile", help="PLINK binary file prefix"),
    ],
    covariate_file: Annotated[
        Path | None,
        typer.Option("-c", help="Covariate file (whitespace-delimited, NA missing)"),
    ] = None,
    strategy: Annotated[
        str,
        typer.Option("-strategy", help="Missing genotype handling: mean, hwe or drop"),
    ] = "mean",
    seed: Annotated[
        int | None,
        typer.Option("-seed", help="Random seed for -strategy hwe"),
    ] = None,
    kinship_file: Annotated[
        Path | None,
        typer.Option("-k", help="Autosomal kinship matrix to load for the samples"),
    ] = None,
    kinship_x_file: Annotated[
        Path | None,
        typer.Option("-kx", help="X-chromosome kinship matrix"),
    ] = None,
    kinship_eigen: Annotated[
        Path | None,
        typer.Option("-eigen", help="Prefix of autosomal .eigenD/.eigenU files"),
    ] = None,
    kinship_x_eigen: Annotated[
        Path | None,
        typer.Option("-eigenx", help="Prefix of X-chromosome .eigenD/.eigenU files"),
    ] = None,
    par_build: Annotated[
        str,
        typer.Option("-build", help="Genome build for pseudo-autosomal regions"),
    ] = "hg19",
) -> None:
    """Consolidate PLINK genotypes with the .fam phenotype and covariates.

    Samples with a missing phenotype or covariate are removed first, then
    missing genotypes are resolved with the chosen strategy. Writes
    .geno.txt, .pheno.txt, .cov.txt and .samples.txt files.
    """
    config = _get_config()
    t_start = time.perf_counter()
    command_line = " ".join(sys.argv)

    run = ConsolidationConfig(
        strategy=strategy,
        seed=seed,
        kinship_file=kinship_file,
        kinship_x_file=kinship_x_file,
        kinship_eigen=kinship_eigen,
        kinship_x_eigen=kinship_x_eigen,
        par_build=par_build,
    )
    try:
        method = run.build_strategy()
        par_region = ParRegion(run.par_build)
    except ValueError as e:
        _fail(str(e))

    if covariate_file is not None and not covariate_file.exists():
        _fail(f"Covariate file not found: {covariate_file}")

    plink_data = _load_plink(bfile)
    load_time = time.perf_counter() - t_start

    # Phenotype/covariate completeness decides which samples are analyzed
    keep = ~np.isnan(plink_data.phenotype)
    covariate = None
    if covariate_file is not None:
        try:
            covariate, indicator = read_covariate_file(covariate_file)
        except ValueError as e:
            _fail(str(e))
        if covariate.n_rows != plink_data.n_samples:
            _fail(
                f"Covariate file has {covariate.n_rows} rows but PLINK data "
                f"has {plink_data.n_samples} samples"
            )
        keep &= indicator == 1
    n_analyzed = int(keep.sum())
    if n_analyzed == 0:
        _fail("No samples with complete phenotype and covariates")
    typer.echo(
        f"Analyzing {n_analyzed} of {plink_data.n_samples} samples "
        "with complete phenotype and covariates"
    )

    genotype = plink_data.genotypes[keep]
    phenotype = plink_data.phenotype[keep].reshape(-1, 1)
    if covariate is not None:
        covariate = covariate.take_rows(keep)

    dc = DataConsolidator(strategy=method, par_region=par_region)
    dc.set_phenotype_name(plink_data.iid[keep])
    dc.set_sex(plink_data.sex[keep])

    typer.echo(f"Consolidating with strategy '{method.name}'...")
    consolidate_start = time.perf_counter()
    code = dc.consolidate(
        LabeledMatrix(phenotype, ["phenotype"]),
        covariate,
        LabeledMatrix(genotype, plink_data.marker_labels),
    )
    if code != CONSOLIDATE_OK:
        _fail(f"Consolidation failed with code {code}")
    consolidate_time = time.perf_counter() - consolidate_start
    typer.echo(
        f"Consolidated {dc.data.n_samples} samples "
        f"({dc.data.n_dropped} dropped for missing genotypes)"
    )

    kinship_loaded = _load_run_kinship(dc, run)

    config.ensure_outdir()
    labels = dc.row_labels
    write_labeled_matrix(dc.genotype, labels, config.output_path("geno.txt"))
    write_labeled_matrix(dc.phenotype, labels, config.output_path("pheno.txt"))
    write_labeled_matrix(dc.covariate, labels, config.output_path("cov.txt"))
    write_sample_labels(labels, config.output_path("samples.txt"))
    typer.echo(f"Consolidated data written to {config.outdir}/{config.prefix}.*")

    elapsed = time.perf_counter() - t_start
    params = {
        "n_samples_total": plink_data.n_samples,
        "n_samples_analyzed": n_analyzed,
        "n_samples_consolidated": dc.data.n_samples,
        "n_snps": plink_data.n_snps,
        "n_covariates": dc.covariate.n_cols,
        "strategy": method.name,
        "seed": seed,
        "kinship": ", ".join(kinship_loaded) if kinship_loaded else "none",
    }
    timing = {"total": elapsed, "load": load_time, "consolidate": consolidate_time}
    log_path = write_run_log(config, params, timing, command_line)
    typer.echo(f"Log written to {log_path}")


def _load_run_kinship(dc: DataConsolidator, run: ConsolidationConfig) -> list[str]:
    """Load the kinship sources of ``run`` for the consolidated samples."""
    sources = [
        (KinshipKind.AUTO, run.kinship_file, run.kinship_eigen),
        (KinshipKind.X, run.kinship_x_file, run.kinship_x_eigen),
    ]
    if all(matrix is None and eigen is None for _, matrix, eigen in sources):
        return []

    if dc.set_kinship_sample(dc.row_labels) != 0:
        _fail("Cannot register consolidated samples for kinship loading")
    loaded = []
    for kind, matrix, eigen in sources:
        if matrix is None and eigen is None:
            continue
        if matrix is not None:
            dc.set_kinship_file(kind, matrix)
        if eigen is not None:
            dc.set_kinship_eigen_file(kind, eigen)
        if dc.load_kinship(kind) != 0:
            _fail(f"Failed to load {kind.name} kinship")
        loaded.append(kind.name)
    typer.echo(f"Loaded kinship: {', '.join(loaded)}")
    return loaded


@app.command("count")
def count_command(
    bfile: Annotated[
        Path,
        typer.Option("-bfile", help="PLINK binary file prefix"),
    ],
    stratum: Annotated[
        str,
        typer.Option(
            "-stratum",
            help="Samples to count: all, case, control, male, female, "
            "female_case or female_control",
        ),
    ] = "all",
) -> None:
    """Count raw genotype classes per marker and test HWE.

    Counts are taken before any missing-data handling. Writes one line per
    marker to .counts.txt with call rate, allele frequency, exact and
    chi-squared HWE p-values.
    """
    config = _get_config()
    t_start = time.perf_counter()
    command_line = " ".join(sys.argv)

    if stratum not in STRATA:
        _fail(f"-stratum must be one of {', '.join(STRATA)} (got {stratum})")
    sex, case_control = STRATA[stratum]

    plink_data = _load_plink(bfile)
    configure_jax()

    dc = DataConsolidator(strategy="mean")
    dc.set_sex(plink_data.sex)
    phenotype = None
    if plink_data.binary_phenotype:
        phenotype = LabeledMatrix(plink_data.phenotype.reshape(-1, 1), ["phenotype"])
    elif case_control != CaseControl.ANY:
        _fail(f"-stratum {stratum} needs a case/control phenotype in the .fam file")
    code = dc.consolidate(
        phenotype, None, LabeledMatrix(plink_data.genotypes, plink_data.marker_labels)
    )
    if code != CONSOLIDATE_OK:
        _fail(f"Consolidation failed with code {code}")

    counter = GenotypeCounter()
    summaries = []
    count_start = time.perf_counter()
    for column in progress_iterator(
        range(plink_data.n_snps),
        total=plink_data.n_snps,
        desc="Counting",
        enabled=sys.stdout.isatty(),
    ):
        counter.reset()
        code = dc.count_raw_genotype(column, counter, sex=sex, phenotype=case_control)
        if code != 0:
            _fail(f"Counting marker {column} failed with code {code}")
        summaries.append(counter.summary())
    count_time = time.perf_counter() - count_start

    # chi-squared HWE from observed calls only; missing calls are not hom-ref here
    stratum_geno = dc.raw_genotype_for_stratum(sex, case_control)
    hwe_chisq = compute_hwe_pvalues(*count_genotype_classes(stratum_geno.values))

    config.ensure_outdir()
    counts_path = write_genotype_counts(
        plink_data.marker_labels, summaries, hwe_chisq, config.output_path("counts.txt")
    )
    typer.echo(f"Genotype counts written to {counts_path}")

    elapsed = time.perf_counter() - t_start
    params = {
        "n_samples": plink_data.n_samples,
        "n_snps": plink_data.n_snps,
        "stratum": stratum,
        "counts_file": str(counts_path),
    }
    timing = {"total": elapsed, "count": count_time}
    log_path = write_run_log(config, params, timing, command_line)
    typer.echo(f"Log written to {log_path}")


@app.command("kinship")
def kinship_command(
    bfile: Annotated[
        Path,
        typer.Option("-bfile", help="PLINK binary file prefix (sample order)"),
    ],
    kinship_file: Annotated[
        Path | None,
        typer.Option("-k", help="Kinship matrix file"),
    ] = None,
    eigen_prefix: Annotated[
        Path | None,
        typer.Option("-eigen", help="Prefix of .eigenD.txt/.eigenU.txt files"),
    ] = None,
    x_chromosome: Annotated[
        bool,
        typer.Option("-x", help="Load as X-chromosome kinship"),
    ] = False,
    write_eigen: Annotated[
        bool,
        typer.Option("-write-eigen", help="Write the eigendecomposition to outdir"),
    ] = False,
) -> None:
    """Load a kinship matrix for the PLINK samples and summarize it.

    The eigendecomposition files win when both -k and -eigen are given.
    With -write-eigen the decomposition is saved as .eigenD.txt/.eigenU.txt
    for later runs.
    """
    config = _get_config()
    t_start = time.perf_counter()
    command_line = " ".join(sys.argv)

    if kinship_file is None and eigen_prefix is None:
        _fail("one of -k (kinship matrix) or -eigen (eigen prefix) is required")
    if kinship_file is not None and not kinship_file.exists():
        _fail(f"Kinship matrix file not found: {kinship_file}")

    plink_data = _load_plink(bfile)
    kind = KinshipKind.X if x_chromosome else KinshipKind.AUTO

    dc = DataConsolidator()
    if dc.set_kinship_sample(plink_data.iid) != 0:
        _fail("PLINK sample IDs must be unique to load kinship")
    if kinship_file is not None:
        dc.set_kinship_file(kind, kinship_file)
    if eigen_prefix is not None:
        dc.set_kinship_eigen_file(kind, eigen_prefix)

    load_start = time.perf_counter()
    if dc.load_kinship(kind) != 0:
        _fail(f"Failed to load {kind.name} kinship")
    load_time = time.perf_counter() - load_start

    if kind == KinshipKind.X:
        K, U, S = (
            dc.get_kinship_for_x(),
            dc.get_kinship_u_for_x(),
            dc.get_kinship_s_for_x(),
        )
    else:
        K, U, S = (
            dc.get_kinship_for_auto(),
            dc.get_kinship_u_for_auto(),
            dc.get_kinship_s_for_auto(),
        )
    typer.echo(f"{kind.name} kinship: {K.shape[0]} x {K.shape[1]}")
    typer.echo(
        f"Eigenvalues: min={S.min():.6g}, max={S.max():.6g}, "
        f"zero={int(np.sum(S == 0.0))}"
    )

    source = eigen_prefix if eigen_prefix is not None else kinship_file
    params = {
        "n_samples": plink_data.n_samples,
        "kinship_kind": kind.name,
        "kinship_source": str(source),
        "eigenvalue_min": float(S.min()),
        "eigenvalue_max": float(S.max()),
    }
    if write_eigen:
        config.ensure_outdir()
        d_path, u_path = write_eigen_files(S, U, config.outdir / config.prefix)
        typer.echo(f"Eigendecomposition written to {d_path} and {u_path}")
        params["eigen_files"] = f"{d_path}, {u_path}"

    elapsed = time.perf_counter() - t_start
    timing = {"total": elapsed, "load": load_time}
    log_path = write_run_log(config, params, timing, command_line)
    typer.echo(f"Log written to {log_path}")


if __name__ == "__main__":
    app()
