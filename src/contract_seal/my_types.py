from typing import Dict, List, Optional, Tuple, Union

Bool = bool
Bytes = bytes
Float = float
Int = int
Str = str


__all__ = ["Bool", "Bytes", "Dict", "Float", "Int", "List", "Optional", "Str", "Tuple", "Union"]
