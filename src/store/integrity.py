"""Pass/fail gate for externally signed dataset files.

Signing happens outside tabstore. This module only checks detached,
ASCII-armored signatures next to the metadata and import-state files
before a dataset is first read, and fails closed when required.
"""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path
from typing import Protocol

from core.constants import IMPORT_STATE_FILE_NAME, METADATA_FILE_NAME
from core.errors import IntegrityCheckFailedError
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)
SIGNATURE_SUFFIX = ".asc"
SIGNED_FILE_NAMES = (METADATA_FILE_NAME, IMPORT_STATE_FILE_NAME)


class SignatureVerifier(Protocol):
    """Verifies one data file against its detached signature."""

    def verify(self, data_path: Path, signature_path: Path) -> bool:
        """Return whether the signature is valid for the data file."""
        ...


class GpgSignatureVerifier:
    """Delegate verification to the ``gpg`` command-line tool."""

    def __init__(self, gpg_binary: str = "gpg") -> None:
        self._gpg_binary = gpg_binary

    def verify(self, data_path: Path, signature_path: Path) -> bool:
        """Run ``gpg --verify`` and report its verdict."""
        executable = shutil.which(self._gpg_binary)
        if executable is None:
            raise IntegrityCheckFailedError(
                f"Integrity verification requires '{self._gpg_binary}', which is not on PATH. "
                "Install GnuPG or disable TABSTORE_REQUIRE_INTEGRITY."
            )
        completed = subprocess.run(
            [executable, "--batch", "--verify", str(signature_path), str(data_path)],
            capture_output=True,
            check=False,
        )
        return completed.returncode == 0


def signature_path_for(data_path: Path) -> Path:
    """Return the detached signature path for a data file."""
    return data_path.with_name(data_path.name + SIGNATURE_SUFFIX)


def verify_dataset_integrity(
    dataset_root: Path,
    verifier: SignatureVerifier,
    required: bool,
) -> bool:
    """Verify signed dataset files before first read.

    Args:
        dataset_root: Dataset directory.
        verifier: Signature checker.
        required: Whether missing signatures are fatal.

    Returns:
        ``True`` when all files were verified, ``False`` when skipped.

    Raises:
        IntegrityCheckFailedError: If a signature is invalid, or absent
            while required.
    """
    verified = 0
    for file_name in SIGNED_FILE_NAMES:
        data_path = dataset_root / file_name
        signature_path = signature_path_for(data_path)
        if not signature_path.exists():
            if required:
                raise IntegrityCheckFailedError(
                    f"Missing signature {signature_path} for {data_path}. "
                    "Sign the dataset files or disable TABSTORE_REQUIRE_INTEGRITY."
                )
            continue
        if not verifier.verify(data_path, signature_path):
            raise IntegrityCheckFailedError(
                f"Signature {signature_path} does not verify {data_path}. "
                "The file was modified after signing; restore it or re-sign it."
            )
        verified += 1
    if verified:
        _LOGGER.info("integrity_verified", dataset_root=str(dataset_root), files=verified)
    return verified == len(SIGNED_FILE_NAMES)
