"""DataFrame conversion utilities."""

from collections.abc import Iterable, Mapping

import pandas as pd


def records_to_dataframe(
    records: Iterable[Mapping],
    parse_timestamps: bool = True,
) -> pd.DataFrame:
    """
    Convert iterable of search results to pandas DataFrame.

    Args:
        records: Iterable of mappings (e.g., SearchResult objects from a stream)
        parse_timestamps: If True, convert '_time' field to datetime

    Returns:
        pandas DataFrame with all records

    Example:
        records = [{"_time": "2024-01-01T00:00:00.000+00:00", "host": "web01"}]
        df = records_to_dataframe(records)
        print(df.dtypes)  # _time is datetime64[..., UTC]
    """
    df = pd.DataFrame([dict(record) for record in records])

    if df.empty:
        return df

    if parse_timestamps and "_time" in df.columns:
        # Splunk renders _time as ISO 8601 with a UTC offset
        df["_time"] = pd.to_datetime(df["_time"], utc=True, format="ISO8601")

    return df
