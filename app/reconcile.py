import logging
from typing import Iterable, Optional

from app.models import Country, Genre, Network, Show
from app.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


def is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


class Reconciler:
    """Resolves candidate entities to one canonical instance per natural key.

    Every lookup goes through the unit of work, so an entity staged earlier in
    the batch wins over storage. When nothing matches, a new entity is built
    and staged. Matched networks and countries are shared by other shows, so
    they are reused as found and never overwritten from the candidate.
    """

    def __init__(self, uow: UnitOfWork) -> None:
        self.uow = uow

    def resolve_country(
        self, code: Optional[str], name: Optional[str], timezone: Optional[str]
    ) -> Optional[Country]:
        if is_blank(code):
            logger.warning("Ignoring country %r without a code.", name)
            return None
        country = self.uow.find_country_by_code(code)
        if country is not None:
            return country
        return self.uow.stage_insert(Country(code=code, name=name, timezone=timezone))

    def resolve_network(
        self, network_id: Optional[int], name: Optional[str], country=None
    ) -> Network:
        """Return the network with ``network_id``, or stage a new one.

        ``country`` is any object with ``code``, ``name`` and ``timezone``
        attributes (an upstream record or an API payload).
        """
        if network_id is None:
            network_id = self.uow.next_network_id()
        else:
            network = self.uow.find_network_by_id(network_id)
            if network is not None:
                return network
        network = Network(id=network_id, name=name, country=self._country_for(country))
        return self.uow.stage_insert(network)

    def _country_for(self, candidate) -> Optional[Country]:
        if candidate is None:
            return None
        return self.resolve_country(candidate.code, candidate.name, candidate.timezone)

    def resolve_genre(self, show: Show, name: Optional[str]) -> Optional[Genre]:
        if is_blank(name):
            return None
        genre = self.uow.find_genre_by_name(name)
        if genre is None:
            genre = self.uow.stage_insert(Genre(name=name))
        if genre not in show.genres:
            show.genres.append(genre)
        return genre

    def resolve_genres(self, show: Show, names: Optional[Iterable[Optional[str]]]) -> None:
        for name in names or []:
            self.resolve_genre(show, name)

    def resolve_show(self, show_id: int) -> Optional[Show]:
        """Return an already known show with this id, staged or committed."""
        show = self.uow.find_pending_show(show_id)
        if show is not None:
            return show
        return self.uow.find_show_by_id(show_id)
