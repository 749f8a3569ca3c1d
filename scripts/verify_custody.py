#!/usr/bin/env python3
"""
Проверка выгрузки цепочки custody.

Использование:
    # Один файл
    python scripts/verify_custody.py data/exports/custody_chain_<id>_2025-01-31.json

    # Все выгрузки директории
    python scripts/verify_custody.py --dir data/exports

Код выхода 1, если хотя бы одна выгрузка не прошла проверку.
"""

import sys
import argparse
from pathlib import Path

# Добавляем корень проекта в путь
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config.settings import EXPORT_DIR, validate_config
from medtrace.custody import CustodyExporter, CustodyLedger
from medtrace.domain.exceptions import ChainIntegrityError, StorageError
from medtrace.infrastructure import InMemoryRecordStore, ProvenanceFileManager


def verify_file(exporter: CustodyExporter, path: Path) -> bool:
    try:
        bundle = exporter.load(path)
        exporter.assert_bundle(bundle)
    except ChainIntegrityError as e:
        print(f"  [TAMPER] {path.name}: {e.message} (tx={e.transaction_id}, #{e.index})")
        return False
    except (StorageError, ValueError) as e:
        print(f"  [ERROR] {path.name}: {e}")
        return False

    events = sum(len(t.events) for t in bundle.transactions)
    print(f"  [OK] {path.name}: {len(bundle.transactions)} цепочек, {events} событий")
    return True


def main():
    parser = argparse.ArgumentParser(description="Проверка выгрузок custody")
    parser.add_argument("files", nargs="*", type=Path, help="Файлы выгрузок")
    parser.add_argument("--dir", type=Path, default=None, help=f"Директория (по умолчанию {EXPORT_DIR})")
    args = parser.parse_args()

    try:
        validate_config()
    except ValueError as e:
        print(f"[ERROR] {e}")
        return 1

    file_manager = ProvenanceFileManager()
    files = list(args.files) or file_manager.list_exports(args.dir or EXPORT_DIR)
    if not files:
        print("[WARN] Нет файлов для проверки")
        return 0

    exporter = CustodyExporter(CustodyLedger(InMemoryRecordStore()), file_manager)
    results = [verify_file(exporter, path) for path in files]

    print(f"\nИтого: {sum(results)}/{len(results)} выгрузок целы")
    return 0 if all(results) else 1


if __name__ == "__main__":
    sys.exit(main())
