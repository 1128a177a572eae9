"""Exception taxonomy for the liquid-frames motion core."""

from __future__ import annotations


class LiquidFramesError(Exception):
    """Base class for all errors raised by liquid_frames."""


class WorkspaceNotFoundError(LiquidFramesError, FileNotFoundError):
    """A requested workspace snapshot does not exist on disk."""

    def __init__(self, path) -> None:
        self.path = path
        super().__init__(f"Workspace snapshot not found at: {path}")


class ExportNotFoundError(LiquidFramesError, FileNotFoundError):
    """No workspace export was found in the export directory."""

    def __init__(self, directory) -> None:
        self.directory = directory
        super().__init__(
            f"No liquid-frames workspace export found in: {directory}\n"
            f"Export a workspace first or pass an explicit path."
        )


class WorkspaceDecodeError(LiquidFramesError, ValueError):
    """The persisted container could not be parsed as a workspace snapshot."""


class ProfileDeletionError(LiquidFramesError, ValueError):
    """Deleting the profile would leave the workspace without any profile."""


class UnknownProfileError(LiquidFramesError, KeyError):
    """A profile id does not resolve to a profile in the workspace."""


class UsageError(LiquidFramesError):
    """Invalid command-line usage."""
