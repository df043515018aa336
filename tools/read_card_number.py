#!/usr/bin/env python3
# tools/read_card_number.py
import sys, argparse

from cardscan.core.config import load_config
from cardscan.core.log import configure_logging
from cardscan.io.ingest import load_image
from cardscan.ocr.digits import digit_strings, extract_card_number
from cardscan.ocr.extraction import DEFAULT_TOP_CANDIDATES
from cardscan.ocr.recognizer import TesseractRecognizer
from cardscan.validate.checksum import mask_card_number


def main():
    ap = argparse.ArgumentParser(description="Read a card number from an already cropped card image.")
    ap.add_argument("image")
    ap.add_argument("--config", default=None)
    ap.add_argument("--debug", action="store_true")
    args = ap.parse_args()

    configure_logging("DEBUG" if args.debug else "INFO")
    cfg = load_config(args.config)
    try:
        img = load_image(args.image)
    except FileNotFoundError as e:
        print(f"[ERR] {e}"); sys.exit(2)

    recognizer = TesseractRecognizer(cfg.get("ocr"))
    top_n = int((cfg.get("extraction") or {}).get("top_candidates", DEFAULT_TOP_CANDIDATES))
    texts = recognizer.recognize_text(img, top_n)
    digits = [d for d in digit_strings(texts) if d]
    print(f"readings={len(texts)}  digit_only={len(digits)}  lengths={sorted({len(d) for d in digits})}")

    number = extract_card_number(texts)
    if number is None:
        print("card_number=<none>")
        sys.exit(1)
    print(f"card_number={mask_card_number(number)}")

if __name__ == "__main__":
    main()
