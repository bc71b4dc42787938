# ballot_ledger/legacy.py
"""
Asset-transfer operations kept from the ledger's earlier asset model.

They work on any JSON object record and are not part of the voting
contract: transferring a voter or candidate only rewrites its Owner field.
"""
import logging
from typing import Optional

from ballot_ledger.encoding import decode, encode
from ballot_ledger.errors import DecodeError, NotFound
from ballot_ledger.storage import WorldState
from ballot_ledger.transition import Transition

logger = logging.getLogger(__name__)


class AssetTransferContract:
    def asset_exists(self, state: WorldState, id: str) -> bool:
        return bool(state.get(id))

    def transfer_asset(self, state: WorldState, id: str, new_owner: str) -> Optional[str]:
        """
        Overwrite the Owner field of the record at id.

        Returns:
            The previous owner, None if the record had none

        Raises:
            NotFound: no record at id
            DecodeError: the record is not a JSON object
        """
        with Transition(state) as tx:
            raw = tx.get(id)
            if raw is None:
                raise NotFound(id, "asset")
            try:
                asset = decode(raw)
            except ValueError as e:
                raise DecodeError(id, f"invalid JSON ({e})")
            if not isinstance(asset, dict):
                raise DecodeError(id, f"expected a JSON object, got {type(asset).__name__}")
            old_owner = asset.get("Owner")
            asset["Owner"] = new_owner
            tx.put(id, encode(asset))
        logger.info(f"Asset {id} transferred from {old_owner} to {new_owner}")
        return old_owner
