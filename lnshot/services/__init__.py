# Services package
from .catalogue import build_catalogue, resolve_display_name, sanitize_name
from .planner import plan_links, disambiguate
from .reconciler import reconcile_tree, plan_mutations, scan_destination, apply_mutations
from .mirror_service import reconcile, run_pass

__all__ = [
    'build_catalogue',
    'resolve_display_name',
    'sanitize_name',
    'plan_links',
    'disambiguate',
    'reconcile_tree',
    'plan_mutations',
    'scan_destination',
    'apply_mutations',
    'reconcile',
    'run_pass',
]
