from __future__ import annotations

from datetime import date, datetime, time
from typing import Iterable, List, Optional, Union

from .parser import Clipping


def filter_since(clippings: Iterable[Clipping], cutoff: Optional[Union[date, datetime]]) -> List[Clipping]:
    """Keep clippings added on or after cutoff, in their original order.

    A plain date counts from midnight. No cutoff keeps everything.
    """

    if cutoff is None:
        return list(clippings)
    if not isinstance(cutoff, datetime):
        cutoff = datetime.combine(cutoff, time.min)
    return [clipping for clipping in clippings if clipping.date >= cutoff]
