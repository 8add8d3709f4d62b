"""
Archive extraction with an external 7-Zip executable.

LFPS delivers job results as ZIP archives. :class:`ArchiveExtractor` unpacks
them with ``7z x <archive> -o<dir> -y``; ``-y`` answers yes to every prompt,
so extracting twice into the same directory overwrites the first copy.
"""

import logging
import os
import shutil
import subprocess

from landfire.config_reader import LandfireConfig
from landfire.errors import ExtractionFailed

logger = logging.getLogger(__name__)

SEVENZIP_NAMES = ("7z", "7zz", "7za")


def find_sevenzip():
    """Return the first 7-Zip executable on ``PATH``, or ``None``."""
    for name in SEVENZIP_NAMES:
        path = shutil.which(name)
        if path:
            return path
    return None


class ArchiveExtractor:
    """
    Unpack archives by running 7-Zip in a subprocess.

    Parameters
    ----------
    executable : str, optional
        7-Zip executable to run. Defaults to ``config.sevenzip_executable``,
        then to the first of ``7z``, ``7zz`` and ``7za`` found on ``PATH``.
    config : LandfireConfig, optional
        Client configuration, consulted for the executable only.
    """

    def __init__(self, executable=None, config: LandfireConfig = None):
        if executable is None and config is not None:
            executable = config.sevenzip_executable
        self.executable = executable

    def command(self, executable, archive_path, target_dir):
        return [executable, "x", str(archive_path), f"-o{target_dir}", "-y"]

    def extract(self, archive_path, target_dir):
        """
        Extract ``archive_path`` into ``target_dir``, creating it if needed.

        :return: ``target_dir``
        :raises ExtractionFailed: if the archive is missing, no 7-Zip
            executable is available, or 7-Zip exits with a non-zero code
        """
        archive_path = os.fspath(archive_path)
        target_dir = os.fspath(target_dir)
        if not os.path.isfile(archive_path):
            raise ExtractionFailed(archive_path, "archive does not exist")
        executable = self.executable or find_sevenzip()
        if not executable:
            raise ExtractionFailed(
                archive_path,
                f"no 7-Zip executable found (looked for {', '.join(SEVENZIP_NAMES)}); "
                "install p7zip or set LANDFIRE_SEVENZIP_EXECUTABLE",
            )

        os.makedirs(target_dir, exist_ok=True)
        cmd = self.command(executable, archive_path, target_dir)
        logger.info(f"Extracting {archive_path} -> {target_dir}")
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except OSError as e:
            raise ExtractionFailed(archive_path, f"could not run {executable}: {e}") from e
        if result.returncode != 0:
            raise ExtractionFailed(
                archive_path,
                f"{executable} exited with code {result.returncode}:\n"
                f"stdout: {result.stdout}\n"
                f"stderr: {result.stderr}",
            )
        return target_dir
