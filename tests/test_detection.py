import base64

import numpy as np
import pytest

from pantry_tracker.detection import Detector, decode_frame, decode_image
from pantry_tracker.errors import DecodeFailure, ModelNotReady

from .conftest import FakeModel, encode_jpeg, prediction


def frame():
    return np.zeros((48, 64, 3), dtype=np.uint8)


def test_detect_before_load_raises_model_not_ready():
    model = FakeModel([prediction("cat")])
    detector = Detector(model_loader=lambda: model)

    assert not detector.ready
    with pytest.raises(ModelNotReady):
        detector.detect(frame())
    assert model.frames == []


def test_load_runs_loader_once():
    calls = []

    def loader():
        calls.append(1)
        return FakeModel()

    detector = Detector(model_loader=loader)
    assert detector.load() is detector
    detector.load()

    assert detector.ready
    assert len(calls) == 1


def test_failed_load_is_reported_and_retryable():
    attempts = []

    def loader():
        attempts.append(1)
        if len(attempts) == 1:
            raise RuntimeError("hub unreachable")
        return FakeModel()

    detector = Detector(model_loader=loader)
    with pytest.raises(RuntimeError):
        detector.load()
    assert not detector.ready
    assert detector.load_error == "hub unreachable"

    detector.load()
    assert detector.ready
    assert detector.load_error is None


def test_detect_returns_one_detection_per_instance():
    model = FakeModel([prediction("cat", 0.91, (10, 20, 110, 220)), prediction("cat", 0.05), prediction("dog", 0.5)])
    detector = Detector(model_loader=lambda: model, confidence_threshold=0.0).load()

    detections = detector.detect(frame())

    assert [d.label for d in detections] == ["cat", "cat", "dog"]
    first = detections[0]
    assert first.confidence == pytest.approx(0.91)
    assert first.bounding_box == {"x": 10.0, "y": 20.0, "width": 100.0, "height": 200.0}
    assert model.frames[0].shape == (48, 64, 3)


def test_confidence_threshold_filters_low_scores():
    model = FakeModel([prediction("cat", 0.91), prediction("cat", 0.05), prediction("dog", 0.5)])
    detector = Detector(model_loader=lambda: model, confidence_threshold=0.5).load()

    assert [d.label for d in detector.detect(frame())] == ["cat", "dog"]


def test_detect_with_nothing_found():
    detector = Detector(model_loader=lambda: FakeModel([])).load()
    assert detector.detect(frame()) == []


def test_decode_image_roundtrips_jpeg():
    decoded = decode_image(encode_jpeg(width=64, height=48))
    assert decoded.shape == (48, 64, 3)


@pytest.mark.parametrize("data", [b"", b"not an image at all"])
def test_decode_image_rejects_garbage(data):
    with pytest.raises(DecodeFailure):
        decode_image(data)


def test_decode_frame_accepts_plain_base64_and_data_url():
    encoded = base64.b64encode(encode_jpeg()).decode("ascii")

    assert decode_frame(encoded).shape == (48, 64, 3)
    assert decode_frame(f"data:image/jpeg;base64,{encoded}").shape == (48, 64, 3)


@pytest.mark.parametrize("text", ["%%%not-base64%%%", "data:image/jpeg;base64,", base64.b64encode(b"junk").decode()])
def test_decode_frame_rejects_bad_input(text):
    with pytest.raises(DecodeFailure):
        decode_frame(text)


def test_decode_frame_accepts_line_wrapped_base64():
    encoded = base64.b64encode(encode_jpeg()).decode("ascii")
    wrapped = "\n".join(encoded[i:i + 76] for i in range(0, len(encoded), 76))

    assert decode_frame(wrapped).shape == (48, 64, 3)
    assert decode_frame(f"data:image/jpeg;base64,{wrapped}\r\n").shape == (48, 64, 3)
