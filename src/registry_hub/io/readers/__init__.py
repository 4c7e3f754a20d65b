from registry_hub.io.readers.delimited_reader import (
    DelimitedReaderError,
    iter_rows,
)

__all__ = ["DelimitedReaderError", "iter_rows"]
