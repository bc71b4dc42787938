# Seed the configured world state with the demo candidates, voters and votes.
# Run once at deployment: python -m ballot_ledger.bootstrap
import logging

from ballot_ledger.config import load_settings
from ballot_ledger.contract import VotingContract
from ballot_ledger.storage import build_world_state

logger = logging.getLogger(__name__)


def main() -> None:
    settings = load_settings()
    logging.basicConfig(level=settings.log_level)
    state = build_world_state(settings)
    VotingContract.from_settings(settings).initialize_ledger(state)
    close = getattr(state, "close", None)
    if close is not None:
        close()
    print(f"Seeded {settings.backend} world state")


if __name__ == "__main__":
    main()
