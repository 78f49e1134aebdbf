"""
Registre en mémoire des checkouts en cours, indexé par l'identifiant
stocké dans le cookie de session du navigateur.

Les entrées sont purgées à chaque ajout/lecture:
- checkout confirmé: retiré après CHECKOUT_CONFIRMED_TTL_SECONDS
- checkout inactif (pas de suivi de paiement en cours): retiré après CHECKOUT_IDLE_TTL_SECONDS
"""
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional
from uuid import uuid4
import asyncio
import logging
import time

from .service import CheckoutFlow
from checkout_service import config

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    flow: CheckoutFlow
    last_seen: float
    finished_since: Optional[float] = None


class CheckoutStore:
    def __init__(
        self,
        *,
        idle_ttl: Optional[float] = None,
        confirmed_ttl: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._entries: Dict[str, _Entry] = {}
        self._idle_ttl = idle_ttl if idle_ttl is not None else config.CHECKOUT_IDLE_TTL_SECONDS
        self._confirmed_ttl = confirmed_ttl if confirmed_ttl is not None else config.CHECKOUT_CONFIRMED_TTL_SECONDS
        self._clock = clock

    def __len__(self) -> int:
        return len(self._entries)

    def flows(self) -> List[CheckoutFlow]:
        return [entry.flow for entry in self._entries.values()]

    def active_count(self) -> int:
        """Checkouts non confirmés (après purge)."""
        self.prune()
        return sum(1 for entry in self._entries.values() if not entry.flow.finished)

    def add(self, flow: CheckoutFlow) -> str:
        self.prune()
        checkout_id = str(uuid4())
        self._entries[checkout_id] = _Entry(flow=flow, last_seen=self._clock())
        return checkout_id

    def get(self, checkout_id: Optional[str]) -> Optional[CheckoutFlow]:
        self.prune()
        if not checkout_id:
            return None
        entry = self._entries.get(checkout_id)
        if entry is None:
            return None
        entry.last_seen = self._clock()
        return entry.flow

    def discard(self, checkout_id: Optional[str]) -> bool:
        """Retire et démonte le checkout (arrêt du minuteur). Retourne True si trouvé."""
        entry = self._entries.pop(checkout_id or "", None)
        if entry is None:
            return False
        entry.flow.teardown()
        return True

    def prune(self) -> int:
        """Retire les checkouts confirmés ou abandonnés. Retourne le nombre retiré."""
        now = self._clock()
        expired = []
        for checkout_id, entry in self._entries.items():
            flow = entry.flow
            if flow.finished:
                if entry.finished_since is None:
                    entry.finished_since = now
                if now - entry.finished_since >= self._confirmed_ttl:
                    expired.append(checkout_id)
            elif not flow.polling and now - entry.last_seen >= self._idle_ttl:
                expired.append(checkout_id)
        for checkout_id in expired:
            self.discard(checkout_id)
        if expired:
            logger.info("Checkouts expirés retirés: %s", len(expired))
        return len(expired)

    async def aclose_all(self) -> None:
        """Arrêt de l'application: aucun minuteur ne doit survivre à l'hôte."""
        flows = self.flows()
        self._entries.clear()
        for flow in flows:
            flow.teardown()
        pollers = [flow.poller for flow in flows if flow.poller is not None]
        if pollers:
            await asyncio.gather(*(poller.wait() for poller in pollers))
        if flows:
            logger.info("Checkouts fermés à l'arrêt: %s", len(flows))
