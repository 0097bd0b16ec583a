# src/rts_sim/utils.py
from __future__ import annotations

import json
import math
import os
import time
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, TextIO

import numpy as np

DESCRIPTION_HEADER = "# DESCRIPTIONS"
DATA_HEADER = "# DATA STARTS"


@dataclass
class FptResult:
    """Common container for first-passage-time ensemble outputs."""

    fpts: np.ndarray = field(default_factory=lambda: np.empty(0, dtype=np.float64))
    meta: Optional[Dict[str, Any]] = None

    @property
    def num_trials(self) -> int:
        return int(self.fpts.shape[0])

    @property
    def mfpt(self) -> float:
        """Mean first-passage time, NaN for an empty ensemble."""
        if self.num_trials == 0:
            return math.nan
        return float(np.mean(self.fpts))

    @property
    def stddev(self) -> float:
        if self.num_trials == 0:
            return math.nan
        return float(np.std(self.fpts))


def now_str() -> str:
    return time.strftime("%Y%m%d-%H%M%S")


def _format_value(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:g}"
    return str(value)


def export_filename(prefix: str, fields: Dict[str, Any], suffix: str = ".dat") -> str:
    """
    Build a file name like ``prefix_sys_size_10_dim_2_.dat`` from parameters.
    """
    parts = [prefix]
    for key, value in fields.items():
        parts.append(f"{key}_{_format_value(value)}")
    return "_".join(parts) + "_" + suffix


class FptWriter:
    """
    Stream first-passage times to a text file, one ``%.5e`` value per line,
    after a header describing the run.
    """

    def __init__(self, path: str | os.PathLike[str], description: Dict[str, Any]):
        self.path = Path(path)
        self.description = dict(description)
        self._fh: TextIO | None = None
        self.count = 0

    def open(self) -> "FptWriter":
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._fh = open(self.path, "w", encoding="utf-8")
        self._fh.write(DESCRIPTION_HEADER + "\n")
        for key, value in self.description.items():
            self._fh.write(f"{key}: {_format_value(value)}\n")
        self._fh.write(DATA_HEADER + "\n")
        return self

    def write(self, fpt: float) -> None:
        if self._fh is None:
            raise RuntimeError(f"{self.path} is not open; use FptWriter as a context manager")
        self._fh.write(f"{fpt:.5e}\n")
        self.count += 1

    def write_all(self, fpts: Iterable[float]) -> None:
        for fpt in fpts:
            self.write(fpt)

    def close(self) -> None:
        if self._fh is not None:
            self._fh.flush()
            self._fh.close()
            self._fh = None

    def __enter__(self) -> "FptWriter":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def read_fpt_file(path: str | os.PathLike[str]) -> tuple[Dict[str, str], np.ndarray]:
    """
    Read a file written by ``FptWriter`` back into (description, fpts).
    """
    description: Dict[str, str] = {}
    values = []
    in_data = False
    with open(path, "r", encoding="utf-8") as fh:
        for line in fh:
            line = line.strip()
            if not line or line == DESCRIPTION_HEADER:
                continue
            if line == DATA_HEADER:
                in_data = True
                continue
            if in_data:
                values.append(float(line))
            else:
                key, sep, value = line.partition(":")
                if not sep:
                    raise ValueError(f"malformed header line in {path}: {line!r}")
                description[key.strip()] = value.strip()
    if not in_data:
        raise ValueError(f"{path} has no '{DATA_HEADER}' marker")
    return description, np.asarray(values, dtype=np.float64)


def save_fpt_result(
    path: str | os.PathLike[str], result: FptResult, *, overwrite: bool = True
) -> None:
    """Serialize an FptResult to a compressed .npz."""
    out_dir = Path(path).parent
    out_dir.mkdir(parents=True, exist_ok=True)
    if not overwrite and Path(path).exists():
        raise FileExistsError(f"{path} already exists")
    np.savez_compressed(
        path,
        fpts=np.asarray(result.fpts, dtype=np.float64),
        meta=np.array(result.meta or {}, dtype=object),
    )


def load_fpt_result(path: str | os.PathLike[str]) -> FptResult:
    data = np.load(path, allow_pickle=True)
    fpts = data["fpts"].astype(np.float64)
    meta = data["meta"].item() if "meta" in data else {}
    return FptResult(fpts=fpts, meta=meta)


def load_params(path: str | os.PathLike[str]) -> Dict[str, Any]:
    """
    Load simulation parameters from JSON or TOML.
    """
    path = str(path)
    if not Path(path).exists():
        raise FileNotFoundError(f"parameter file not found: {path}")
    with open(path, "rb") as fh:
        data = fh.read()
    suffix = Path(path).suffix.lower()
    if suffix in {".json", ""}:
        return json.loads(data.decode("utf-8"))
    if suffix in {".toml", ".tml"}:
        return tomllib.loads(data.decode("utf-8"))
    raise ValueError(f"Unsupported parameter file format: {suffix}")
