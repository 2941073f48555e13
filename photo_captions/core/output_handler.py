"""Output handler module."""
import csv
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Union

CSV_FIELDS = ['file', 'categories', 'category', 'caption', 'footer', 'footer_en']
CATEGORY_SEPARATOR = '|'


class OutputHandler:
    """Handler for output operations."""

    def __init__(self):
        """Initialize the output handler."""
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def _ensure_parent(output_path: Union[str, Path]) -> None:
        parent = os.path.dirname(str(output_path))
        if parent:
            os.makedirs(parent, exist_ok=True)

    def save_to_json(self, results: List[Dict[str, Any]], output_path: Union[str, Path]) -> None:
        """Save results to a pretty-printed JSON array."""
        try:
            self._ensure_parent(output_path)
            with open(output_path, 'w', encoding='utf-8') as f:
                json.dump(results, f, indent=2, ensure_ascii=False)
            self.logger.info(f"Saved results to JSON: {output_path}")
        except Exception as e:
            self.logger.error(f"Error saving JSON: {str(e)}")
            raise

    def save_to_csv(self, results: List[Dict[str, Any]], output_path: Union[str, Path]) -> None:
        """Save results to CSV with a fixed column set."""
        try:
            self._ensure_parent(output_path)
            with open(output_path, 'w', newline='', encoding='utf-8') as f:
                writer = csv.DictWriter(f, fieldnames=CSV_FIELDS, extrasaction='ignore')
                writer.writeheader()
                for result in results:
                    row = {field: result.get(field, '') for field in CSV_FIELDS}
                    row['categories'] = CATEGORY_SEPARATOR.join(
                        str(c) for c in result.get('categories') or []
                    )
                    writer.writerow(row)
            self.logger.info(f"Saved results to CSV: {output_path}")
        except Exception as e:
            self.logger.error(f"Error saving CSV: {str(e)}")
            raise

    def save(self, results: List[Dict[str, Any]], output_path: Union[str, Path],
             output_format: str = 'json') -> None:
        """Save results in the given format ('json' or 'csv')."""
        output_format = output_format.lower()
        if output_format == 'json':
            self.save_to_json(results, output_path)
        elif output_format == 'csv':
            self.save_to_csv(results, output_path)
        else:
            raise ValueError(f"Unsupported output format: {output_format}")
