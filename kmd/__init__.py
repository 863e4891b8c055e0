"""kmd - personal command dispatcher for desktop programs.

Example:
    from kmd.config import KmdConfig
    from kmd.handlers import Commands

    commands = Commands(KmdConfig())
    commands.edit("~/.bashrc")
    commands.decomp("photos.tar.gz")
"""

__version__ = "0.0.1"

__all__ = ["__version__"]
