"""Kinship matrices for relatedness correction.

Key pieces:
- KinshipHolder / KinshipKind: deferred, at-most-once loading per kind
- read_kinship_matrix / write_kinship_matrix: GEMMA .cXX.txt format
- read_eigen_files / write_eigen_files: .eigenD.txt / .eigenU.txt pairs
- eigendecompose_kinship: LAPACK eigendecomposition with zeroed small values
"""

from genoprep.kinship.eigen import eigendecompose_kinship
from genoprep.kinship.eigen_io import eigen_paths, read_eigen_files, write_eigen_files
from genoprep.kinship.holder import KinshipHolder, KinshipKind
from genoprep.kinship.io import read_kinship_matrix, write_kinship_matrix

__all__ = [
    "KinshipHolder",
    "KinshipKind",
    "eigen_paths",
    "eigendecompose_kinship",
    "read_eigen_files",
    "read_kinship_matrix",
    "write_eigen_files",
    "write_kinship_matrix",
]
