"""Local filesystem driver used to materialize a plan."""

import os
import re
import shutil

from .base import StorageError


class LocalDriver:
    """Filesystem operations rooted at the organized directory.

    Relative paths are resolved against the root_path provided at
    construction; absolute paths are used as given.
    """

    def __init__(self, root_path: str) -> None:
        """Initialize local storage driver.

        Args:
            root_path: Path to the root directory

        Raises:
            StorageError: If root_path doesn't exist or isn't a directory
        """
        self.root_path = os.path.realpath(root_path)
        if not os.path.exists(self.root_path):
            raise StorageError(f"Directory does not exist: {self.root_path}")
        if not os.path.isdir(self.root_path):
            raise StorageError(f"Not a directory: {self.root_path}")

    def _full_path(self, path: str) -> str:
        """Convert relative path to absolute path."""
        if not path:
            return self.root_path
        return os.path.join(self.root_path, path)

    def exists(self, path: str) -> bool:
        """Check if a file or directory exists at the given path."""
        return os.path.lexists(self._full_path(path))

    def ensure_folder(self, path: str) -> bool:
        """Create a folder and its parents.

        Returns:
            True if the folder was created, False if it already existed
        """
        full_path = self._full_path(path)
        if os.path.isdir(full_path):
            return False
        try:
            os.makedirs(full_path, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to create folder {path}: {e}")
        return True

    def unique_destination(self, path: str) -> str:
        """Return path, or a numbered variant "name (2).ext" if it is taken."""
        if not self.exists(path):
            return path
        folder, name = os.path.split(path)
        stem, ext = os.path.splitext(name)
        counter = 2
        while True:
            candidate = os.path.join(folder, f"{stem} ({counter}){ext}")
            if not self.exists(candidate):
                return candidate
            counter += 1

    def move_path(self, src_path: str, dest_path: str) -> None:
        """Move a file or directory to dest_path.

        Tries an atomic rename first. If that fails (e.g. across devices) the
        source is copied, the copy is confirmed present, and only then is the
        source deleted.

        Raises:
            StorageError: If the source is missing or the move fails
        """
        full_src = self._full_path(src_path)
        full_dest = self._full_path(dest_path)

        if not os.path.lexists(full_src):
            raise StorageError(f"Source does not exist: {src_path}")

        dest_dir = os.path.dirname(full_dest)
        if dest_dir:
            os.makedirs(dest_dir, exist_ok=True)

        try:
            os.rename(full_src, full_dest)
            return
        except OSError:
            pass

        dest_existed = os.path.lexists(full_dest)
        try:
            if os.path.isdir(full_src) and not os.path.islink(full_src):
                shutil.copytree(full_src, full_dest, symlinks=True)
            else:
                shutil.copy2(full_src, full_dest, follow_symlinks=False)
        except Exception as e:
            message = f"Failed to copy {src_path} to {dest_path}: {e}"
            if not dest_existed:
                try:
                    self._remove_partial(full_dest)
                except OSError as cleanup_error:
                    message += f" (partial copy left behind: {cleanup_error})"
            raise StorageError(message)

        if not os.path.lexists(full_dest):
            raise StorageError(f"Copy of {src_path} missing at {dest_path}")

        try:
            if os.path.isdir(full_src) and not os.path.islink(full_src):
                shutil.rmtree(full_src)
            else:
                os.remove(full_src)
        except Exception as e:
            raise StorageError(f"Copied {src_path} but failed to remove source: {e}")

    def _remove_partial(self, full_path: str) -> None:
        """Delete what a failed copy left at full_path."""
        if os.path.isdir(full_path) and not os.path.islink(full_path):
            shutil.rmtree(full_path)
        elif os.path.lexists(full_path):
            os.remove(full_path)

    def sanitize_filename(self, name: str) -> str:
        """Sanitize a file or folder name for local filesystem.

        Removes characters that are invalid on most filesystems:
        / \\ : * ? \" < > |
        """
        # Replace problematic characters with safe alternatives
        name = name.replace('/', '-')
        name = name.replace('\\', '-')
        name = name.replace(':', '-')
        name = name.replace('*', '')
        name = name.replace('?', '')
        name = name.replace('"', "'")
        name = name.replace('<', '')
        name = name.replace('>', '')
        name = name.replace('|', '-')

        # Remove leading/trailing whitespace and dots
        name = name.strip().strip('.')

        # Collapse multiple spaces/dashes
        name = re.sub(r'\s+', ' ', name)
        name = re.sub(r'-+', '-', name)

        # Limit length (leave room for extensions)
        if len(name) > 100:
            name = name[:100].strip()

        return name
