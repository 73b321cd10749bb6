import sys

from bookvault.config import settings
from bookvault.importer import ImportFileError, run_import
from bookvault.library import Library


def main() -> int:
    """One-shot import of the JSON file given on the command line (or the configured IMPORT_FILE)."""
    path = sys.argv[1] if len(sys.argv) > 1 else settings.import_file
    try:
        summary = run_import(Library(settings.database_file), path)
    except ImportFileError as e:
        print(f"Error: {e}")
        return 1

    print("Import finished!")
    print(f"Inserted: {summary.succeeded}")
    if summary.failed:
        print(f"Errors: {summary.failed}")
    print(f"\nOpen http://{settings.api_host}:{settings.api_port} to see the new books.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
