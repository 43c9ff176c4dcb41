"""
Desired-state planner.

Pure function from the catalogue to the target tree: one directory per
account, one link per game inside it.
"""

import logging
from collections import Counter
from pathlib import PurePath
from typing import Dict, List, Sequence, Tuple

from ..models import Account, DesiredLink

logger = logging.getLogger(__name__)


def disambiguate(items: Sequence[Tuple[str, str]]) -> Dict[str, str]:
    """
    Give every (name, key) pair a unique name.

    Names that collide (compared case-insensitively, so the result is safe on
    case-insensitive filesystems) are ALL suffixed with " (<key>)"; unique
    names are left alone. Keys must be unique.

    Returns:
        {key: final_name}
    """
    counts = Counter(name.casefold() for name, _ in items)
    taken = {name.casefold() for name, _ in items if counts[name.casefold()] == 1}

    result = {}
    for name, key in items:
        if counts[name.casefold()] == 1:
            result[key] = name
            continue

        candidate = f"{name} ({key})"
        while candidate.casefold() in taken:
            candidate = f"{candidate} ({key})"
        taken.add(candidate.casefold())
        result[key] = candidate
        logger.info(f"[Planner] Name collision on {name!r}; using {candidate!r}")

    return result


def plan_links(accounts: Sequence[Account]) -> List[DesiredLink]:
    """
    Map the catalogue to an ordered list of DesiredLink.

    Each account directory precedes its game links. Accounts without any
    screenshot folder get no directory.
    """
    populated = [a for a in accounts if a.games]
    account_names = disambiguate([(a.display_name, str(a.account_id)) for a in populated])

    plan = []
    for account in populated:
        account_dir = PurePath(account_names[str(account.account_id)])
        plan.append(DesiredLink(relative_path=account_dir))

        game_names = disambiguate([(g.display_name, g.title_key) for g in account.games])
        for game in account.games:
            plan.append(DesiredLink(
                relative_path=account_dir / game_names[game.title_key],
                target_path=game.screenshot_source_path,
            ))

    logger.debug(f"[Planner] {len(plan)} desired entries for {len(populated)} accounts")
    return plan
