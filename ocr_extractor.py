"""
OCR Module for the card name band
Crops the title strip out of a card photo and reads it with Tesseract
"""
import cv2
import numpy as np
from PIL import Image
import logging
import os
import pytesseract
from typing import Union
from config import settings

logger = logging.getLogger(__name__)

if settings.TESSERACT_CMD:
    pytesseract.pytesseract.tesseract_cmd = settings.TESSERACT_CMD

class NameBandReader:
    """Reads the card name region of a photographed card"""

    def __init__(self, band_top: float = None, band_height: float = None,
                 language: str = None, jpeg_quality: int = None,
                 target_height: int = None):
        self.band_top = band_top if band_top is not None else settings.NAME_BAND_TOP
        self.band_height = band_height if band_height is not None else settings.NAME_BAND_HEIGHT
        self.language = language or settings.OCR_LANGUAGE
        self.jpeg_quality = jpeg_quality or settings.JPEG_QUALITY
        self.target_height = target_height or settings.OCR_TARGET_HEIGHT
        self.tesseract_config = settings.OCR_TESSERACT_CONFIG

    def load_image(self, image_path: Union[str, os.PathLike]) -> np.ndarray:
        """Load a photo from disk as a BGR array"""
        image_path = os.fspath(image_path)
        if not os.path.exists(image_path):
            raise FileNotFoundError(f"Image file not found: {image_path}")

        image = cv2.imread(image_path)
        if image is None:
            raise ValueError(f"Could not load image: {image_path}")

        logger.debug(f"Loaded {image_path}: {image.shape[1]}x{image.shape[0]}")
        return image

    def crop_name_band(self, image: np.ndarray) -> np.ndarray:
        """Full-width strip starting at band_top of the height, band_height tall"""
        height = image.shape[0]
        top = int(height * self.band_top)
        bottom = min(height, top + int(height * self.band_height))

        band = image[top:bottom, :]
        if band.size == 0:
            raise ValueError(f"Name band is empty for image of height {height}")
        return band

    def compress(self, image: np.ndarray) -> np.ndarray:
        """JPEG round trip, matching what the OCR engine is normally fed"""
        ok, encoded = cv2.imencode('.jpg', image, [cv2.IMWRITE_JPEG_QUALITY, self.jpeg_quality])
        if not ok:
            raise ValueError("JPEG encoding of name band failed")
        return cv2.imdecode(encoded, cv2.IMREAD_COLOR)

    def preprocess(self, image: np.ndarray) -> np.ndarray:
        """Optimize the band for OCR: upscale, grayscale, denoise, contrast"""
        height, width = image.shape[:2]
        if height < self.target_height:
            scale_factor = self.target_height / height
            new_width = int(width * scale_factor)
            image = cv2.resize(image, (new_width, self.target_height), interpolation=cv2.INTER_CUBIC)
            logger.debug(f"Resized band from {width}x{height} to {new_width}x{self.target_height}")

        if len(image.shape) == 3:
            gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        else:
            gray = image.copy()

        # Bilateral filter keeps glyph edges while removing sensor noise
        filtered = cv2.bilateralFilter(gray, 9, 75, 75)
        clahe = cv2.createCLAHE(clipLimit=2.0, tileGridSize=(8, 8))
        return clahe.apply(filtered)

    def read_text(self, image: np.ndarray) -> str:
        """Run Tesseract on an image array and return the raw text"""
        if len(image.shape) == 3:
            pil_image = Image.fromarray(cv2.cvtColor(image, cv2.COLOR_BGR2RGB))
        else:
            pil_image = Image.fromarray(image)

        text = pytesseract.image_to_string(pil_image, lang=self.language, config=self.tesseract_config)
        logger.debug(f"Tesseract returned {len(text.splitlines())} lines")
        return text

    def read_name_band(self, image_path: Union[str, os.PathLike]) -> str:
        """Load -> crop -> compress -> preprocess -> OCR"""
        image = self.load_image(image_path)
        band = self.compress(self.crop_name_band(image))
        return self.read_text(self.preprocess(band))
