from .dry_run import DryRunExecutor

__all__ = ["DryRunExecutor"]
