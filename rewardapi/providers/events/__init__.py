from .dispatcher import EventDispatcher, create_event_dispatcher
from .domain_events import CoinsChangedEvent, CreditsChangedEvent, PokemonGrantedEvent
