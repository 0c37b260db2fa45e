from pathlib import Path
import json
import pandas as pd

def _ensure_exists(path: Path):
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"file not found: {p}")

def read_json(path: Path):
    _ensure_exists(path)
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)

def read_parquet(path: Path) -> pd.DataFrame:
    _ensure_exists(path)
    return pd.read_parquet(path)

def read_records(path: Path) -> pd.DataFrame:
    """Load a list-of-objects JSON file or a parquet file into a DataFrame."""
    path = Path(path)
    if path.suffix == ".parquet":
        return read_parquet(path)
    return pd.DataFrame.from_records(read_json(path))
