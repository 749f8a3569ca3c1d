#!/usr/bin/env python3
"""
Парсинг декодированного скана (QR) в ParsedRecord.

Использование:
    # Строка прямо в аргументе
    python scripts/parse_scan.py "https://example.com/a?b=1"

    # Строки из файла (по одной на строку)
    python scripts/parse_scan.py --file scans.txt

    # С промежуточными результатами этапов
    python scripts/parse_scan.py --verbose "WIFI:T:WPA;S:MyNet;P:secret;H:false;"
"""

import sys
import argparse
import json
from pathlib import Path

# Добавляем корень проекта в путь
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from loguru import logger

from config.settings import LOG_LEVEL
from medtrace.application.factory import ProvenanceComponentFactory


def main():
    parser = argparse.ArgumentParser(description="Парсинг QR-скана в ParsedRecord")
    parser.add_argument("raw", nargs="?", help="Декодированная строка")
    parser.add_argument("--file", type=Path, help="Файл со строками (по одной на строку)")
    parser.add_argument("--verbose", action="store_true", help="Показать результаты этапов")
    args = parser.parse_args()

    logger.remove()
    logger.add(sys.stderr, level=LOG_LEVEL)

    if args.file:
        if not args.file.exists():
            print(f"[ERROR] Файл не найден: {args.file}")
            return 1
        raws = [line for line in args.file.read_text(encoding="utf-8").splitlines() if line.strip()]
    elif args.raw is not None:
        raws = [args.raw]
    else:
        parser.print_help()
        return 1

    pipeline = ProvenanceComponentFactory.create_pipeline()
    for raw in raws:
        result = pipeline.process(raw)
        output = result.to_dict() if args.verbose else result.record.model_dump(mode="json")
        print(json.dumps(output, ensure_ascii=False, indent=2))

    return 0


if __name__ == "__main__":
    sys.exit(main())
