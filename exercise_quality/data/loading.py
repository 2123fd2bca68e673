"""Raw tabular file loading.

Missing values in the sensor export appear as empty strings, 'NA', or the
spreadsheet sentinel '#DIV/0!'. All of them are normalized to NaN here so
later stages only deal with one missing marker.
"""

from pathlib import Path
from typing import List, Optional, Union
import logging

import numpy as np
import pandas as pd


logger = logging.getLogger(__name__)

DEFAULT_MISSING_MARKERS = ['', 'NA', '#DIV/0!']


def normalize_missing(
    data: pd.DataFrame,
    missing_markers: Optional[List[str]] = None
) -> pd.DataFrame:
    """Replace missing-value markers with NaN in non-numeric columns.

    Parameters
    ----------
    data : pd.DataFrame
        Raw records.
    missing_markers : list of str, optional
        Strings treated as missing. Surrounding whitespace is ignored.

    Returns
    -------
    data : pd.DataFrame
        New DataFrame with markers replaced by NaN.
    """
    if missing_markers is None:
        missing_markers = DEFAULT_MISSING_MARKERS

    markers = {marker.strip() for marker in missing_markers}
    result = data.copy()

    for column in result.columns:
        if not pd.api.types.is_numeric_dtype(result[column]):
            stripped = result[column].astype(str).str.strip()
            mask = result[column].notna() & stripped.isin(markers)
            if mask.any():
                result[column] = result[column].where(~mask, np.nan)

    return result


def load_raw_csv(
    path: Union[str, Path],
    missing_markers: Optional[List[str]] = None
) -> pd.DataFrame:
    """Load a raw CSV export and normalize its missing values.

    Parameters
    ----------
    path : str or Path
        CSV file with a header row.
    missing_markers : list of str, optional
        Strings treated as missing (default: '', 'NA', '#DIV/0!').

    Returns
    -------
    data : pd.DataFrame
        Raw records with missing values as NaN. Numeric columns whose only
        non-numeric values were markers are converted to float.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")

    if missing_markers is None:
        missing_markers = DEFAULT_MISSING_MARKERS

    data = pd.read_csv(
        path,
        na_values=missing_markers,
        keep_default_na=False,
        low_memory=False
    )
    data = normalize_missing(data, missing_markers)

    # Columns that held markers were read as text; retry numeric conversion
    for column in data.columns:
        if not pd.api.types.is_numeric_dtype(data[column]):
            converted = pd.to_numeric(data[column], errors='coerce')
            if converted.notna().sum() == data[column].notna().sum():
                data[column] = converted

    logger.info(f"Loaded {len(data):,} rows x {data.shape[1]} columns from {path}")
    return data
