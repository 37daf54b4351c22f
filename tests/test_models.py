import pytest
from pydantic import ValidationError

from profile_store.api.schemas import ProfileDetailModel
from profile_store.profiles.models import (
    Profile,
    ProfileFields,
    photo_extension,
    photo_filename,
    truncate_note,
)


def _profile(**overrides):
    data = {
        "id": "c0ffee00-0000-4000-8000-000000000001",
        "name": "A",
        "address": "X",
        "contact": None,
        "photo": "photo.jpg",
        "date": "2024-01-01",
        "note": "hello",
        "createdAt": "2024-01-01T00:00:00.000000Z",
        "updatedAt": "2024-01-01T00:00:00.000000Z",
    }
    data.update(overrides)
    return Profile.model_validate(data)


def test_profile_fields_strip_and_keep_date_verbatim():
    fields = ProfileFields(name=" A ", address=" X ", date=" 2024-01-01", note=" n ", contact=" c ")
    assert (fields.name, fields.address, fields.note, fields.contact) == ("A", "X", "n", "c")
    assert fields.date == " 2024-01-01"


@pytest.mark.parametrize("contact", [None, "", "   "])
def test_profile_fields_empty_contact_is_none(contact):
    fields = ProfileFields(name="A", address="X", date="d", note="n", contact=contact)
    assert fields.contact is None


@pytest.mark.parametrize("field", ["name", "address", "date", "note"])
def test_profile_fields_reject_blank_required(field):
    data = {"name": "A", "address": "X", "date": "d", "note": "n", field: "  "}
    with pytest.raises(ValidationError):
        ProfileFields(**data)


@pytest.mark.parametrize(
    "filename, expected",
    [
        ("face.JPG", "photo.jpg"),
        ("archive.tar.GZ", "photo.gz"),
        ("C:\\Users\\me\\pic.Png", "photo.png"),
        ("noext", "photo"),
        (".hidden", "photo"),
        (None, "photo"),
    ],
)
def test_photo_filename(filename, expected):
    assert photo_filename(photo_extension(filename)) == expected


def test_truncate_note():
    assert truncate_note("short") == "short"
    assert truncate_note("a" * 51) == "a" * 50 + "..."
    assert truncate_note("abcdef", limit=3) == "abc..."


def test_profile_document_and_summary():
    profile = _profile(note="n" * 70)
    document = profile.to_document()
    assert document["createdAt"] == "2024-01-01T00:00:00.000000Z"
    assert "created_at" not in document

    summary = profile.to_summary("/images/", 50)
    assert summary.photo == f"/images/{profile.id}/photo.jpg"
    assert summary.note.endswith("...")


def test_detail_model_adds_photo_url():
    profile = _profile()
    detail = ProfileDetailModel.from_domain(profile, "/images/x/photo.jpg")
    dumped = detail.model_dump(by_alias=True)
    assert dumped["photoUrl"] == "/images/x/photo.jpg"
    assert dumped["updatedAt"] == profile.updated_at
