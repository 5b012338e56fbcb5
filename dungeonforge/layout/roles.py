from typing import List, Sequence

from .model import Region, RegionRole


class RegionRoleAssigner:
    """Label placed regions with the roles a playable map needs.

    Rules, by generation order:
      * first region becomes Spawn unless some region already is one;
      * last region becomes Boss unless some region already is one;
      * the region at ``n // 2`` becomes Treasure when it has no role yet;
      * every region still without a role becomes Combat.

    With fewer than three regions: one region is Spawn only (no Boss), two
    regions are Spawn and Boss (no Treasure). Validation reports the gap.
    """

    def assign(self, regions: Sequence[Region]) -> List[Region]:
        out = list(regions)
        n = len(out)
        if n == 0:
            return out
        if not any(r.role is RegionRole.SPAWN for r in out):
            if out[0].role is None:
                out[0] = out[0].with_role(RegionRole.SPAWN)
            else:
                first_free = next((i for i, r in enumerate(out) if r.role is None), None)
                if first_free is not None:
                    out[first_free] = out[first_free].with_role(RegionRole.SPAWN)
        if n > 1 and not any(r.role is RegionRole.BOSS for r in out):
            last = next((i for i in range(n - 1, -1, -1) if out[i].role is not RegionRole.SPAWN), None)
            if last is not None:
                out[last] = out[last].with_role(RegionRole.BOSS)
        mid = n // 2
        if n >= 3 and out[mid].role is None:
            out[mid] = out[mid].with_role(RegionRole.TREASURE)
        for i, r in enumerate(out):
            if r.role is None:
                out[i] = r.with_role(RegionRole.COMBAT)
        return out


__all__ = ["RegionRoleAssigner"]
