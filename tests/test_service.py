# tests/test_service.py
from io import BytesIO

import pytest
from PIL import Image

from metastrip.errors import EmptyInput, UnreadableMetadata, UnsupportedFormat
from metastrip.service import build_report, cleaned_filename, strip_image, validate_upload

def test_blue_png_report(blue_png):
    report = build_report(blue_png, "test.png", "image/png")
    assert report.file_name == "test.png"
    assert report.mime_type == "image/png"
    assert report.file_size == len(blue_png)
    assert report.has_metadata is False
    assert report.all_tags == {}
    assert [g.has_data for g in report.groups()] == [False] * 5
    assert [g.group_name for g in report.groups()] == [
        "Camera Information",
        "Location Information",
        "Date & Time Information",
        "Image Properties",
        "Other Metadata",
    ]

def test_exif_report_groups(exif_jpeg):
    report = build_report(exif_jpeg, "photo.jpg", "image/jpeg")
    assert report.has_metadata is True
    assert report.camera_info.data["Exif IFD0 - Make"] == "Canon"
    assert report.location_info.data["GPS - GPS Latitude Ref"] == "N"
    assert "Exif IFD0 - Date/Time" in report.date_time_info.data
    assert "Exif IFD0 - Orientation" in report.image_info.data
    assert report.other_info.data["Exif IFD0 - Artist"] == "Alice"

def test_report_groups_partition_all_tags(exif_jpeg, png_with_text):
    for data, name in ((exif_jpeg, "a.jpg"), (png_with_text, "b.png")):
        report = build_report(data, name)
        merged = {}
        for group in report.groups():
            assert group.has_data == bool(group.data)
            assert not set(group.data) & set(merged)
            merged.update(group.data)
        assert merged == report.all_tags

def test_mime_type_is_not_sniffed(blue_png):
    assert build_report(blue_png, "test.png", "application/x-custom").mime_type == "application/x-custom"

def test_report_serializes_with_wire_names(blue_png):
    body = build_report(blue_png, "test.png", "image/png").model_dump(by_alias=True)
    assert set(body) == {
        "fileName", "fileSize", "mimeType", "exifData", "hasMetadata",
        "cameraInfo", "locationInfo", "dateTimeInfo", "imageInfo", "otherInfo",
    }
    assert body["cameraInfo"] == {"groupName": "Camera Information", "data": {}, "hasData": False}

@pytest.mark.parametrize("operation", [
    lambda d, n: build_report(d, n, "text/plain"),
    strip_image,
])
def test_unsupported_extension(operation):
    with pytest.raises(UnsupportedFormat) as exc:
        operation(b"arbitrary content", "test.txt")
    assert "Unsupported file format" in exc.value.message

@pytest.mark.parametrize("operation", [
    lambda d, n: build_report(d, n, "image/png"),
    strip_image,
])
@pytest.mark.parametrize("data", [b"", None])
def test_empty_input(operation, data):
    with pytest.raises(EmptyInput):
        operation(data, "test.png")

def test_missing_filename(blue_png):
    with pytest.raises(UnsupportedFormat):
        validate_upload(blue_png, None)
    with pytest.raises(UnsupportedFormat):
        validate_upload(blue_png, "noextension")

def test_mixed_case_extension_accepted(exif_jpeg):
    validate_upload(exif_jpeg, "photo.JPG")
    out = strip_image(exif_jpeg, "photo.JPG")
    assert Image.open(BytesIO(out)).format == "JPEG"

def test_unreadable_metadata_propagates():
    with pytest.raises(UnreadableMetadata):
        build_report(b"test image content", "test.jpg", "image/jpeg")

def test_strip_round_trip(blue_png):
    out = strip_image(blue_png, "test.png")
    original = Image.open(BytesIO(blue_png)).convert("RGB")
    cleaned = Image.open(BytesIO(out)).convert("RGB")
    assert cleaned.size == (100, 100)
    assert cleaned.tobytes() == original.tobytes()
    assert build_report(out, "test.png").has_metadata is False

def test_cleaned_filename():
    assert cleaned_filename("photo.jpg") == "cleaned_photo.jpg"
