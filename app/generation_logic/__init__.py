"""Generation logic package.

This package groups the helpers that orchestrate the worksheet export workflow
(row fetching, image normalization, document assembly, response building).
Keeping them here allows the API modules to stay minimal and focused on HTTP
routing while the export logic lives in composable modules.
"""

from .piece_export import export_piece_document  # noqa: F401
from .report_finalization import build_docx_response  # noqa: F401
