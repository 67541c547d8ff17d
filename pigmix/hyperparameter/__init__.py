from .search import (
    SENTINEL_FITNESS,
    BoundsPenaltyObjective,
    HyperparameterObjective,
    HyperparameterSearch,
    resolve_parameters,
)
from .search_space import BUILTIN_SEARCH_SPACES, available_search_spaces, get_search_space
