"""
Page coordinators

View controllers for list and detail pages and the mutation coordinator.
"""

from coordinators.mutation_coordinator import MutationCoordinator
from coordinators.view_controller import DetailViewController, ListViewController

__all__ = [
    'MutationCoordinator',
    'ListViewController',
    'DetailViewController'
]
