import os
import sys
import argparse
from dotenv import load_dotenv

from packages.ingestion_engine import (
    ArchiveOpenError,
    InMemoryExpenseGateway,
    InvalidPeriodError,
    NoRecognizedFilesError,
    PersistenceError,
    SupabaseExpenseGateway,
    ingest_archive,
)
from packages.ingestion_engine.persistence import DEFAULT_EXPENSES_TABLE


def get_env_value(*names: str) -> str | None:
    for name in names:
        value = os.environ.get(name)
        if value:
            return value
    return None


def build_gateway(dry_run: bool, table: str):
    if dry_run:
        return InMemoryExpenseGateway()

    from supabase import create_client

    # Supports both legacy and dashboard env naming
    url = get_env_value("SUPABASE_URL", "NEXT_PUBLIC_SUPABASE_URL")
    key = get_env_value("SUPABASE_SERVICE_KEY", "SUPABASE_SERVICE_ROLE_KEY")
    if not url or not key:
        print(
            "❌ Missing Supabase env vars. Set SUPABASE_URL/NEXT_PUBLIC_SUPABASE_URL and "
            "SUPABASE_SERVICE_KEY/SUPABASE_SERVICE_ROLE_KEY, or pass --dry-run.",
        )
        sys.exit(1)
    return SupabaseExpenseGateway(create_client(url, key), table=table)


def import_file(file_path: str, user_id: str, gateway, password=None, start=None, end=None) -> int:
    print(f"📂 Reading archive: {file_path}")
    with open(file_path, "rb") as f:
        archive_bytes = f.read()

    try:
        result = ingest_archive(
            archive_bytes,
            owner_id=user_id,
            gateway=gateway,
            password=password,
            start_date=start,
            end_date=end,
        )
    except (ArchiveOpenError, NoRecognizedFilesError, InvalidPeriodError) as e:
        print(f"❌ {e}")
        return 1
    except PersistenceError as e:
        parsed = sum(report.valid_rows for report in e.processed_files)
        print(f"❌ {e} ({parsed} rows parsed, nothing saved)")
        return 1

    for report in result.processed_files:
        print(
            f"   {report.file_name} [{report.sheet_name}]: "
            f"{report.valid_rows}/{report.total_rows} rows, {len(report.errors)} errors"
        )
        for message in report.errors:
            print(f"⚠️  {message}")

    if result.persistence is None:
        print("⚠️ No valid records to insert.")
        return 0

    p = result.persistence
    print(
        f"🚀 {p.total_submitted} submitted for User {user_id}: "
        f"{p.new_records} new, {p.duplicates_ignored} duplicates ignored"
    )
    return 0


if __name__ == "__main__":
    load_dotenv()

    parser = argparse.ArgumentParser(description="Import a household-ledger ZIP archive")
    parser.add_argument("file", help="Path to the .zip archive")
    parser.add_argument("--user_id", required=True, help="Target Supabase User ID (UUID)")
    parser.add_argument("--start", help="Earliest expense date to import (YYYY-MM-DD)")
    parser.add_argument("--end", help="Latest expense date to import (YYYY-MM-DD)")
    parser.add_argument("--table", default=DEFAULT_EXPENSES_TABLE, help="Target table")
    parser.add_argument(
        "--dry-run", action="store_true", help="Parse and dedupe without writing to Supabase"
    )

    args = parser.parse_args()

    if not os.path.exists(args.file):
        print(f"❌ File not found: {args.file}")
        sys.exit(1)

    gateway = build_gateway(args.dry_run, args.table)
    sys.exit(
        import_file(
            args.file,
            args.user_id,
            gateway,
            password=os.environ.get("ZIP_PASSWORD") or None,
            start=args.start,
            end=args.end,
        )
    )
