from __future__ import annotations

import argparse
import json
import os
import sys

SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.abspath(os.path.join(SCRIPT_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


def load_env_file(env_path: str) -> None:
    if not os.path.exists(env_path):
        return
    with open(env_path, "r", encoding="utf-8") as env_file:
        for line in env_file:
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, value = line.split("=", 1)
            os.environ.setdefault(key, value)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Print target achievements for a period as JSON.")
    parser.add_argument(
        "--env-file",
        default=os.path.join(PROJECT_ROOT, ".env"),
        help="Path to .env file.",
    )
    parser.add_argument(
        "--period",
        default="MONTHLY",
        choices=["MONTHLY", "QUARTERLY", "YEARLY", "ALL"],
        help="Reporting granularity.",
    )
    parser.add_argument("--year", type=int, default=None, help="Restrict to one calendar year.")
    parser.add_argument(
        "--user-id",
        default=None,
        help="User id, ALL or COMPANY. Omit for every user plus company rollups.",
    )
    parser.add_argument(
        "--target-type",
        default="ALL",
        choices=["USER", "COMPANY", "ALL"],
        help="Which target scopes to include.",
    )
    parser.add_argument(
        "--summary-only",
        action="store_true",
        help="Print only the summary block.",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    load_env_file(os.path.abspath(args.env_file))

    from src.api.dependencies import get_achievements_service
    from src.core.logging import configure_logging
    from src.schemas.achievements import AchievementFilters
    from src.schemas.targets import CurrentUser

    configure_logging()
    service = get_achievements_service()
    filters = AchievementFilters(
        period=args.period,
        year=args.year,
        user_id=args.user_id,
        target_type=args.target_type,
    )
    # The report runs with administrator visibility.
    result = service.get_achievements(filters, CurrentUser(id="cli", role="ADMIN"))
    payload = result.summary if args.summary_only else result
    print(json.dumps(payload.model_dump(by_alias=True), indent=2, default=str))


if __name__ == "__main__":
    main()
