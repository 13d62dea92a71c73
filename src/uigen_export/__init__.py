"""UIGen project export.

Turns a persisted UIGen project (a map of file paths to file contents) into a
pushed GitHub repository:
- configuration loaded from `.env`
- structured logging
- `gh`/`git` driven staging, commit and publish with guaranteed cleanup
"""

__version__ = "0.1.0"

from uigen_export.export.config import ExportSettings

__all__ = ["__version__", "ExportSettings"]
