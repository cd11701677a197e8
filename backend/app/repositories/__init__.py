"""
Persistence Repositories

One repository per stored aggregate. Repositories flush but never commit;
the caller (service or request) owns the transaction.
"""

from .decision_repository import DecisionRepository, DecisionListParams
from .scenario_repository import ScenarioRepository
from .outcome_repository import OutcomeRepository
from .scenario_delta_repository import ScenarioDeltaRepository
from .workspace_repository import WorkspaceProfileRepository

__all__ = [
    'DecisionRepository',
    'DecisionListParams',
    'ScenarioRepository',
    'OutcomeRepository',
    'ScenarioDeltaRepository',
    'WorkspaceProfileRepository',
]
