#!/usr/bin/env python3
"""
Export one user's stored progress to JSON
"""

import json
import sys
from datetime import datetime
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parent.parent))

from src.core.database.database_manager import DatabaseManager  # noqa: E402


def export_progress_data(db_path: str, user_id: str, output_path: str) -> bool:
    """Export every key-value entry of a user to JSON"""
    try:
        db_manager = DatabaseManager(db_path)
        db_manager.init_database()

        print(f"📖 Exporting progress of '{user_id}' from {db_path}")
        entries = db_manager.get_all_preferences(user_id)
        print(f"  📝 Found {len(entries)} entries")

        export_data = {
            "export_info": {
                "exported_at": datetime.now().isoformat(),
                "database_path": db_path,
                "user_id": user_id,
            },
            # Sets are not JSON serializable
            "entries": {
                key: sorted(value) if isinstance(value, set) else value
                for key, value in entries.items()
            },
        }

        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        with open(output_file, 'w', encoding='utf-8') as f:
            json.dump(export_data, f, indent=2, ensure_ascii=False)

        db_manager.close()
        print(f"✅ Successfully exported data to {output_path}")
        return True

    except Exception as e:
        print(f"❌ Export failed: {e}")
        return False


def main():
    """Main export function"""
    if len(sys.argv) != 4:
        print("Usage: python export_progress.py <database_path> <user_id> <output_json_path>")
        print("Example: python export_progress.py data/progress.db alice data/alice.json")
        sys.exit(1)

    db_path, user_id, output_path = sys.argv[1:4]

    if not Path(db_path).exists():
        print(f"❌ Database file not found: {db_path}")
        sys.exit(1)

    if export_progress_data(db_path, user_id, output_path):
        sys.exit(0)
    else:
        sys.exit(1)


if __name__ == "__main__":
    main()
