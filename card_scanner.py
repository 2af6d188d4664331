"""
Card Scanner - Orchestrates the photo -> OCR -> name -> rulings workflow
"""
import os
import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Dict, List

from config import settings
from models import LookupKind, LookupResult, ScanInProgressError, ScanState
from name_extractor import extract_card_name
from ocr_extractor import NameBandReader
from ruling_lookup import RulingLookup

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(settings.LOG_FILE) if settings.LOG_FILE else logging.NullHandler(),
        logging.StreamHandler()
    ]
)

logger = logging.getLogger(__name__)

SUPPORTED_IMAGE_EXTENSIONS = ('.jpg', '.jpeg', '.png', '.webp')

class CardScanner:
    """Runs one scan at a time through OCR, name extraction and ruling lookup"""

    def __init__(self, reader: NameBandReader = None, ruling_lookup: RulingLookup = None):
        self.reader = reader or NameBandReader()
        self.ruling_lookup = ruling_lookup or RulingLookup()
        self._in_flight = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._in_flight.locked()

    def scan(self, image_path: str) -> ScanState:
        """Scan a card photo and look up its rulings"""
        return self._run(ScanState(image_path=str(image_path)), from_image=True)

    def scan_text(self, raw_text: str) -> ScanState:
        """Same pipeline, starting from OCR text that is already available"""
        return self._run(ScanState(raw_text=raw_text or ""), from_image=False)

    def _run(self, state: ScanState, from_image: bool) -> ScanState:
        if not self._in_flight.acquire(blocking=False):
            raise ScanInProgressError("A scan is already in progress")

        state.loading = True
        state.started_at = datetime.now()
        try:
            if from_image:
                logger.info(f"Scanning card image: {state.image_path}")
                state.raw_text = self.reader.read_name_band(state.image_path)

            state.card_name = extract_card_name(state.raw_text)
            logger.info(f"Detected card name: {state.card_name!r}")
            state.result = self.ruling_lookup.lookup(state.card_name)

        except Exception as e:
            logger.error(f"OCR or fetch error for {state.image_path or 'text input'}: {str(e)}")
            state.error = str(e)
            state.result = LookupResult.nothing(query=state.card_name)

        finally:
            state.loading = False
            state.finished_at = datetime.now()
            self._in_flight.release()

        return state

class BatchScanner:
    """Scans every card photo in a directory"""

    def __init__(self, scanner: CardScanner):
        self.scanner = scanner

    def find_images(self, directory_path: str) -> List[Path]:
        return sorted(
            p for p in Path(directory_path).iterdir()
            if p.is_file() and p.suffix.lower() in SUPPORTED_IMAGE_EXTENSIONS
        )

    def scan_directory(self, directory_path: str) -> Dict:
        """Scan all supported images in a directory"""
        if not os.path.isdir(directory_path):
            return {
                'success': False,
                'error': f'Not a directory: {directory_path}',
                'directory': directory_path
            }

        image_files = self.find_images(directory_path)
        if not image_files:
            return {
                'success': False,
                'error': 'No image files found in directory',
                'directory': directory_path
            }

        scans = []
        for i, image_file in enumerate(image_files):
            logger.info(f"Processing batch file {i+1}/{len(image_files)}: {image_file}")
            scans.append(self.scanner.scan(str(image_file)))

        return {
            'success': True,
            'directory': directory_path,
            'files_processed': len(image_files),
            'rulings_found': sum(1 for s in scans if s.result.kind == LookupKind.RULINGS),
            'suggestions_offered': sum(1 for s in scans if s.result.kind == LookupKind.SUGGESTIONS),
            'errors': sum(1 for s in scans if s.error),
            'scans': scans
        }
