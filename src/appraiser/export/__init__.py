"""Export module: appraisal result artifacts."""

from appraiser.export.json_export import export_session_json

__all__ = ["export_session_json"]
