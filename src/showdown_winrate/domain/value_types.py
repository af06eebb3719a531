from __future__ import annotations
from typing import NewType, Literal, Union

Address = NewType("Address", str)   # 0x-prefixed, lowercase
Topic0  = NewType("Topic0", str)    # 66-char 0x-hash
BlockTag = Union[Literal["earliest", "latest"], int]
MatchResult = Literal["W", "L"]
