"""Data preparation for export."""

import json
from typing import Dict, Any
from ..core.constants import FileConstants
from ..core.models import SentimentReport


def prepare_export(report: SentimentReport) -> Dict[str, Any]:
    """Prepare a report for JSON export."""
    export_data = report.to_dict()
    export_data["metadata"] = {
        "export_timestamp": None,  # Will be set by export_to_json
        "version": FileConstants.EXPORT_VERSION,
    }
    return export_data


def export_to_json(data: Dict[str, Any], filename: str) -> None:
    """Export data to JSON file."""
    import datetime

    # Add timestamp
    data.setdefault("metadata", {})["export_timestamp"] = datetime.datetime.now().isoformat()

    with open(filename, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
