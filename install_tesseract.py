#!/usr/bin/env python3
"""
Checks for the Tesseract OCR binary and installs it where a package manager allows.
"""

import sys
import logging
import platform
import subprocess
from typing import Optional

import pytesseract

logger = logging.getLogger(__name__)

def get_tesseract_version() -> Optional[str]:
    """Return the installed Tesseract version, or None when it cannot be run"""
    try:
        return str(pytesseract.get_tesseract_version())
    except (pytesseract.TesseractNotFoundError, OSError) as e:
        logger.debug(f"Tesseract not available: {e}")
        return None

def install_tesseract() -> bool:
    """Install Tesseract OCR based on the operating system"""
    system = platform.system().lower()
    logger.info(f"Installing Tesseract OCR on {system}")

    try:
        if system == "windows":
            logger.warning("Automatic install is not supported on Windows. Download the installer from "
                           "https://github.com/UB-Mannheim/tesseract/wiki and add it to PATH, "
                           "or set TESSERACT_CMD.")
            return False

        elif system == "darwin":
            subprocess.run(["brew", "install", "tesseract"], check=True)

        elif system == "linux":
            try:
                subprocess.run(["sudo", "apt-get", "update"], check=True)
                subprocess.run(["sudo", "apt-get", "install", "-y", "tesseract-ocr"], check=True)
            except (subprocess.CalledProcessError, FileNotFoundError):
                try:
                    subprocess.run(["sudo", "yum", "install", "-y", "tesseract"], check=True)
                except (subprocess.CalledProcessError, FileNotFoundError):
                    logger.error("Could not install via apt-get or yum. Please install manually.")
                    return False

    except (subprocess.CalledProcessError, FileNotFoundError) as e:
        logger.error(f"Error installing Tesseract: {e}")
        return False

    version = get_tesseract_version()
    if version:
        logger.info(f"Tesseract installed successfully: {version}")
        return True

    logger.warning("Tesseract installation may have failed or is not in PATH")
    return False

def ensure_tesseract(install: bool = False) -> bool:
    """True when Tesseract is usable, optionally installing it first"""
    version = get_tesseract_version()
    if version:
        logger.info(f"Tesseract is already installed: {version}")
        return True

    if not install:
        return False
    return install_tesseract()

def main():
    logging.basicConfig(level=logging.INFO, format='%(levelname)s - %(message)s')
    return ensure_tesseract(install=True)

if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)
