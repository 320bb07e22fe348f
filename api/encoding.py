"""JSON encoding for payloads that may still hold numpy or pandas scalars."""

from __future__ import annotations

import math
from typing import Any, Callable, Dict, Optional

import numpy as np
import pandas as pd
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def _finite_or_none(value: object) -> Optional[float]:
    # NaN and inf are not valid JSON
    out = float(value)  # type: ignore[arg-type]
    return out if math.isfinite(out) else None


SCALAR_ENCODERS: Dict[Any, Callable[[Any], Any]] = {
    type(pd.NA): lambda _: None,
    np.bool_: bool,
    np.integer: int,
    np.floating: _finite_or_none,
    float: _finite_or_none,
    np.ndarray: lambda arr: arr.tolist(),
}


def to_jsonable(data: object) -> Any:
    return jsonable_encoder(data, custom_encoder=SCALAR_ENCODERS)


def json_response(data: object, status_code: int = 200) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=to_jsonable(data))
