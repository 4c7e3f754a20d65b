"""Unit tests for the streaming activity pass."""

import pytest

from registry_hub.domain.bulk_import.activity_stream import (
    ActivityAccumulator,
    ActivityStream,
)
from registry_hub.domain.protocols import WriteOutcome
from registry_hub.io.loader.batch_writer import BatchUpsertWriter


def activity(number, code, classification="SECO", version="2008"):
    return {
        "EntityNumber": number,
        "ActivityGroup": "001",
        "NaceVersion": version,
        "NaceCode": code,
        "Classification": classification,
    }


class RecordingFlush:
    def __init__(self):
        self.batches = []

    def __call__(self, index, batch):
        self.batches.append({k: (list(v.codes), v.main) for k, v in batch.items()})
        return WriteOutcome(batch_index=index, attempted=len(batch), written=len(batch))


@pytest.mark.unit
class TestActivityAccumulator:
    def test_codes_deduplicated_in_order(self):
        acc = ActivityAccumulator()
        assert acc.add("62010", False)
        assert not acc.add("62010", True)
        assert acc.add("70220", True)
        assert acc.codes == ["62010", "70220"]
        assert acc.main == "62010"


@pytest.mark.unit
class TestActivityStream:
    def test_flushes_when_batch_reaches_size(self):
        flush = RecordingFlush()
        stream = ActivityStream(batch_size=2, flush=flush)
        stream.consume(
            [
                activity("0417.497.106", "62010"),
                activity("0203.201.340", "49100", "MAIN"),
                activity("0417.497.106", "70220", "MAIN"),
            ]
        )
        assert flush.batches == [
            {"0417497106": (["62010"], None), "0203201340": (["49100"], "49100")},
            {"0417497106": (["70220"], "70220")},
        ]
        assert stream.stats.activity_keys_updated == 3

    def test_unaccepted_versions_and_empty_codes_are_filtered(self):
        flush = RecordingFlush()
        stream = ActivityStream(batch_size=10, flush=flush)
        stream.consume(
            [
                activity("0417.497.106", "7022", version="2003"),
                activity("0417.497.106", ""),
                activity("0417.497.106", "70220", version="2025"),
            ]
        )
        assert flush.batches == [{"0417497106": (["70220"], None)}]
        assert stream.stats.for_pass("activities").rows_filtered == 2

    def test_failed_batch_is_recorded_and_stream_continues(self):
        calls = []

        def flush(index, batch):
            calls.append(index)
            error = "boom" if index == 1 else None
            written = 0 if error else len(batch)
            return WriteOutcome(index, len(batch), written=written, error=error)

        stream = ActivityStream(batch_size=1, flush=flush)
        stream.consume([activity("0417.497.106", "62010"), activity("0203.201.340", "49100")])

        assert calls == [1, 2]
        assert stream.stats.failed_batches[0]["stage"] == "activities"
        assert stream.stats.activity_keys_updated == 1

    def test_codes_split_across_batches_accumulate_in_store(self, in_memory_store):
        in_memory_store.rows = {
            "0417497106": {"enterprise_number": "0417497106", "nace_codes": [], "nace_main": None},
            "0203201340": {"enterprise_number": "0203201340", "nace_codes": [], "nace_main": None},
        }
        with BatchUpsertWriter(in_memory_store, concurrency=4) as writer:
            stream = ActivityStream(batch_size=1, flush=writer.write_activity_batch)
            stream.consume(
                [
                    activity("0417.497.106", "62010"),
                    activity("0203.201.340", "49100"),
                    activity("0417.497.106", "70220", "MAIN"),
                    activity("0417.497.106", "62020", "MAIN"),
                ]
            )

        acme = in_memory_store.rows["0417497106"]
        assert acme["nace_codes"] == ["62010", "70220", "62020"]
        assert acme["nace_main"] == "70220"

    def test_invalid_keys_are_counted_and_never_flushed(self):
        flush = RecordingFlush()
        stream = ActivityStream(batch_size=10, flush=flush)
        stream.consume(
            [
                activity("0417.497.107", "62010"),
                activity("BE 0417.497.10X", "62010"),
                activity("0417.497.106", "62010"),
            ]
        )
        assert flush.batches == [{"0417497106": (["62010"], None)}]
        assert stream.stats.checksum_mismatches == 1
        assert stream.stats.invalid_keys == 1
        assert stream.stats.for_pass("activities").unknown_keys == 2

    def test_batch_size_must_be_positive(self):
        with pytest.raises(ValueError):
            ActivityStream(batch_size=0, flush=RecordingFlush())
