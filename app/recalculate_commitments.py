import argparse
from app.logging_config import setup_logging, get_logger
from app.models.enums import CommitmentCategory
from app.models.schemas.commitment import Commitment
from app.services.errors import LedgerError
from app.services.recalculation import COMMITMENTS, recalculate
from app.services.storage import load_current, log_action

logger = get_logger("cli")


def current_emi_commitment_ids() -> list[str]:
    df = load_current(COMMITMENTS, Commitment)
    if df.empty:
        return []
    df = df[df["category"].astype(int) == CommitmentCategory.emi.value]
    return df["commitment_id"].astype(str).tolist()


def recalculate_commitments(commitment_ids: list[str] | None = None) -> tuple[int, list[str]]:
    """Recalculate the given commitments (all current EMI ones by default); returns (done, failed ids)."""
    commitment_ids = commitment_ids or current_emi_commitment_ids()
    done, failed = 0, []

    for commitment_id in commitment_ids:
        try:
            recalculate(commitment_id)
        except LedgerError as e:
            logger.warning("Could not recalculate %s: %s", commitment_id, e.message)
            failed.append(commitment_id)
            continue
        done += 1

    log_action(None, "recalculate", COMMITMENTS, None, {"recalculated": done, "failed": failed})
    return done, failed


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Recalculate commitment totals from their payment history.")
    parser.add_argument(
        "--commitment-id",
        dest="commitment_ids",
        action="append",
        help="Commitment to recalculate; repeat for several. Defaults to every current EMI commitment.",
    )
    args = parser.parse_args(argv)

    setup_logging()
    done, failed = recalculate_commitments(args.commitment_ids)
    print(f"Recalculated {done} commitment(s), {len(failed)} failed")
    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
