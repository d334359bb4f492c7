import logging

from vmdk_sanity.progress import PullProgress


def test_consume_collects_events_and_counts_layers(caplog) -> None:
    events = [
        {"status": "Pulling from library/busybox", "id": "latest"},
        {"status": "Pulling fs layer", "id": "aaa"},
        {"status": "Downloading", "id": "aaa", "progress": "[=>   ]"},
        {"status": "Downloading", "id": "aaa", "progress": "[===> ]"},
        {"status": "Pull complete", "id": "aaa"},
        {"status": "Already exists", "id": "bbb"},
        {"status": "Digest: sha256:0123"},
    ]
    progress = PullProgress(iter(events), disable=True)

    with caplog.at_level(logging.DEBUG, logger="vmdk_sanity"):
        collected = progress.consume()

    assert collected == events
    assert progress.layers["aaa"]["status"] == "Pull complete"
    # repeated "Downloading" is logged once
    assert sum("aaa: Downloading" in r.message for r in caplog.records) == 1
    assert any(r.message == "Digest: sha256:0123" for r in caplog.records)


def test_layer_completion_is_reported() -> None:
    progress = PullProgress([], disable=True)
    assert progress._handle_event({"status": "Pull complete", "id": "x"}) is True
    assert progress._handle_event({"status": "Pull complete", "id": "x"}) is False
    assert progress._handle_event({"progressDetail": {}}) is False
