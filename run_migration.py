"""
SQL migration runner
Usage:
    python run_migration.py                      # every migrations/*.sql in order
    python run_migration.py <migration_file.sql> # a single file
"""
import logging
import sys
from pathlib import Path

from sqlalchemy import text

from appliance_jobs.database import engine

logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"


def split_statements(sql: str) -> list[str]:
    """Split on ';', dropping comment lines and empty statements"""
    lines = [line for line in sql.splitlines() if not line.strip().startswith("--")]
    return [s.strip() for s in "\n".join(lines).split(";") if s.strip()]


def run_migration(migration_file: Path) -> None:
    """Run one SQL migration file inside a single transaction"""
    if not migration_file.exists():
        raise FileNotFoundError(f"Migration file not found: {migration_file}")

    statements = split_statements(migration_file.read_text())
    logger.info(f"📄 {migration_file.name}: {len(statements)} statement(s)")

    with engine.begin() as conn:
        for stmt in statements:
            conn.execute(text(stmt))

    logger.info(f"✅ {migration_file.name} applied")


def main(argv: list[str]) -> int:
    files = [Path(arg) for arg in argv] or sorted(MIGRATIONS_DIR.glob("*.sql"))
    try:
        for migration_file in files:
            run_migration(migration_file)
    except Exception as e:
        logger.error(f"❌ Migration failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
