"""
Export Manager Module
Renders scan results as text and exports them to CSV / JSON
"""
import os
import json
import logging
import pandas as pd
from datetime import datetime
from typing import Dict, List, Any
from config import settings
from models import LookupKind, LookupResult, ScanState

logger = logging.getLogger(__name__)

NOT_FOUND_HEADER = "Card not found. Did you mean:"
NOTHING_FOUND = "Nothing found."

def format_lookup_report(result: LookupResult) -> str:
    """Render a lookup result the way the scanner screen shows it"""
    if result.kind == LookupKind.RULINGS:
        if not result.rulings:
            return f"No rulings for {result.card_name or result.query}."
        return "\n".join(f"{r.published_at}: {r.comment}" for r in result.rulings)

    if result.kind == LookupKind.SUGGESTIONS:
        return "\n".join([NOT_FOUND_HEADER] + list(result.suggestions))

    return NOTHING_FOUND

def format_scan_report(state: ScanState) -> str:
    """Render a full scan: detected name plus rulings, suggestions or the error line"""
    lines = []
    if state.card_name:
        lines.append(f"Detected: {state.card_name}")

    if state.error:
        # OCR / fetch failures show as a single synthetic ruling
        lines.append(settings.SCAN_ERROR_COMMENT)
    else:
        lines.append(format_lookup_report(state.result))

    return "\n".join(lines)

def scan_to_record(state: ScanState) -> Dict[str, Any]:
    """Flatten a scan into one export row"""
    result = state.result
    return {
        'image_path': state.image_path,
        'card_name': state.card_name,
        'resolved_name': result.card_name,
        'result_kind': result.kind.value,
        'rulings_count': len(result.rulings),
        'rulings': " | ".join(f"{r.published_at}: {r.comment}" for r in result.rulings),
        'suggestions': "; ".join(result.suggestions),
        'primary_failure': result.primary_failure,
        'fallback_failure': result.fallback_failure,
        'error': state.error,
        'scanned_at': state.started_at.isoformat() if state.started_at else None,
    }

class ScanExporter:
    """Writes scan results to the exports directory"""

    def __init__(self, exports_path: str = None):
        self.exports_path = exports_path or settings.EXPORTS_PATH

        # Ensure exports directory exists
        os.makedirs(self.exports_path, exist_ok=True)

    def _default_path(self, extension: str) -> str:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return os.path.join(self.exports_path, f"scans_{timestamp}.{extension}")

    def export_to_csv(self, states: List[ScanState], output_file: str = None) -> Dict:
        """Export scans to CSV format"""
        if not states:
            return {'success': False, 'error': 'No scans to export'}

        output_file = output_file or self._default_path('csv')
        try:
            df = pd.DataFrame([scan_to_record(s) for s in states])
            df.to_csv(output_file, index=False, encoding='utf-8')

            logger.info(f"Exported {len(states)} scans to CSV: {output_file}")
            return {
                'success': True,
                'file_path': output_file,
                'scans_exported': len(states)
            }
        except Exception as e:
            logger.error(f"CSV export failed: {str(e)}")
            return {'success': False, 'error': str(e)}

    def export_to_json(self, states: List[ScanState], output_file: str = None) -> Dict:
        """Export scans to JSON format"""
        if not states:
            return {'success': False, 'error': 'No scans to export'}

        output_file = output_file or self._default_path('json')
        try:
            export_data = {
                'export_info': {
                    'timestamp': datetime.now().isoformat(),
                    'total_scans': len(states),
                },
                'scans': [s.to_dict() for s in states]
            }
            with open(output_file, 'w', encoding='utf-8') as f:
                json.dump(export_data, f, indent=2, ensure_ascii=False)

            logger.info(f"Exported {len(states)} scans to JSON: {output_file}")
            return {
                'success': True,
                'file_path': output_file,
                'scans_exported': len(states)
            }
        except Exception as e:
            logger.error(f"JSON export failed: {str(e)}")
            return {'success': False, 'error': str(e)}
