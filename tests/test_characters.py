"""Tests for ownership-checked character, image and video CRUD"""

from unittest.mock import patch
from uuid import uuid4

import pytest

from app.core import characters, images, videos
from app.core.errors import ErrorWithCode
from app.models.character import Character
from app.models.image import Image
from app.models.video import Video


def create(db, user_id, name="Sakura", **fields):
    fields.setdefault("personality", "cheerful")
    fields.setdefault("appearance", "pink hair")
    return characters.create_character(db, user_id, name=name, **fields)


def add_image(db, blobs, character_id, generation_type="text-to-image", source_image_id=None):
    storage_id = blobs.store(db, b"image-bytes", "image/webp")
    image = images.save_generated_image(
        db,
        character_id=character_id,
        storage_id=storage_id,
        user_prompt="smiling",
        full_prompt="smiling, pink hair, personality: cheerful",
        generation_type=generation_type,
        model_id="qwen/qwen-image",
        width=1024,
        height=1024,
        aspect_ratio="1:1",
        source_image_id=source_image_id,
    )
    db.commit()
    return image


def add_video(db, blobs, character_id, source_image_id):
    storage_id = blobs.store(db, b"video-bytes", "video/mp4")
    video = videos.save_generated_video(
        db,
        character_id=character_id,
        source_image_id=source_image_id,
        storage_id=storage_id,
        prompt="waving",
        model_id="bytedance/seedance-1-pro",
        width=1024,
        height=1024,
        duration=5,
    )
    db.commit()
    return video


class TestCreateCharacter:
    @pytest.mark.parametrize("name, slug", [
        ("Sakura", "sakura"),
        ("Captain Nova 7", "captain-nova-7"),
        ("  __Hidden  Fox__ ", "hidden-fox"),
    ])
    def test_stores_derived_slug(self, db, make_user, name, slug):
        user_id = make_user()
        character_id = create(db, user_id, name=name)
        character = db.query(Character).filter(Character.id == character_id).first()
        assert character.slug == slug
        assert character.name == name.strip()

    def test_trims_and_drops_blank_optionals(self, db, make_user):
        user_id = make_user()
        character_id = create(
            db, user_id,
            personality="  cheerful ",
            setting="   ",
            age="",
            special_traits=" cat ears ",
        )
        character = db.query(Character).filter(Character.id == character_id).first()
        assert character.personality == "cheerful"
        assert character.setting is None
        assert character.age is None
        assert character.special_traits == "cat ears"
        assert character.thumbnail_image_id is None

    @pytest.mark.parametrize("fields", [
        {"name": "   "},
        {"personality": ""},
        {"appearance": "  "},
    ])
    def test_rejects_missing_required_fields(self, db, make_user, fields):
        user_id = make_user()
        with pytest.raises(ErrorWithCode) as exc:
            create(db, user_id, **fields)
        assert exc.value.code == "VALIDATION_ERROR"
        assert db.query(Character).count() == 0

    def test_requires_principal(self, db):
        with pytest.raises(ErrorWithCode) as exc:
            create(db, None)
        assert exc.value.code == "USER_NOT_AUTHENTICATED"

    def test_same_name_same_owner_conflicts(self, db, make_user):
        user_id = make_user()
        create(db, user_id, name="Sakura")
        with pytest.raises(ErrorWithCode) as exc:
            create(db, user_id, name="sakura!")
        assert exc.value.code == "CONFLICT"
        assert db.query(Character).count() == 1

    @pytest.mark.parametrize("name", ["さくら", "Ангел", "!!!"])
    def test_name_without_latin_characters_is_created(self, db, make_user, name):
        user_id = make_user()
        character_id = create(db, user_id, name=name)
        character = db.query(Character).filter(Character.id == character_id).first()
        assert character.name == name
        assert character.slug == ""

    def test_empty_slugs_collide(self, db, make_user):
        user_id = make_user()
        create(db, user_id, name="さくら")
        with pytest.raises(ErrorWithCode) as exc:
            create(db, user_id, name="Ангел")
        assert exc.value.code == "CONFLICT"
        assert db.query(Character).count() == 1

    def test_unique_constraint_catches_concurrent_insert(self, db, make_user):
        user_id = make_user()
        with patch("app.core.characters._slug_taken", return_value=False):
            create(db, user_id, name="Sakura")
            with pytest.raises(ErrorWithCode) as exc:
                create(db, user_id, name="Sakura")
        assert exc.value.code == "CONFLICT"
        assert db.query(Character).count() == 1

    def test_same_name_other_owner_succeeds(self, db, make_user):
        alice, bob = make_user(), make_user()
        first = create(db, alice, name="Sakura")
        second = create(db, bob, name="Sakura")
        assert first != second
        assert db.query(Character).filter(Character.slug == "sakura").count() == 2


class TestReadCharacters:
    def test_unauthenticated_reads_are_empty(self, db, blobs, make_user):
        character_id = create(db, make_user())
        assert characters.get_user_characters(db, blobs, None) == []
        assert characters.get_character_by_id(db, blobs, None, character_id) is None
        assert characters.get_character_by_slug(db, blobs, None, "sakura") is None

    def test_other_owner_sees_nothing(self, db, blobs, make_user):
        alice, bob = make_user(), make_user()
        character_id = create(db, alice)

        assert characters.get_character_by_id(db, blobs, bob, character_id) is None
        assert characters.get_character_by_slug(db, blobs, bob, "sakura") is None
        assert characters.get_user_characters(db, blobs, bob) == []
        assert images.get_character_images(db, blobs, bob, character_id) == []
        assert videos.get_character_videos(db, blobs, bob, character_id) == []

    def test_missing_and_foreign_are_indistinguishable(self, db, blobs, make_user):
        alice, bob = make_user(), make_user()
        character_id = create(db, alice)
        missing = characters.get_character_by_id(db, blobs, bob, str(uuid4()))
        foreign = characters.get_character_by_id(db, blobs, bob, character_id)
        assert missing == foreign is None

    def test_annotations(self, db, blobs, make_user):
        user_id = make_user()
        character_id = create(db, user_id)
        image = add_image(db, blobs, character_id, generation_type="initial")
        add_image(db, blobs, character_id)
        add_video(db, blobs, character_id, image.id)
        characters.update_character_thumbnail(db, user_id, character_id, image.id)

        by_id = characters.get_character_by_id(db, blobs, user_id, character_id)
        assert by_id["image_count"] == 2
        assert by_id["video_count"] == 1
        assert by_id["thumbnail_url"] == f"http://testserver/storage/{image.storage_id}"

        by_slug = characters.get_character_by_slug(db, blobs, user_id, "sakura")
        assert by_slug["id"] == character_id

        listed = characters.get_user_characters(db, blobs, user_id)
        assert [c["id"] for c in listed] == [character_id]
        assert listed[0]["image_count"] == 2

    def test_thumbnail_url_is_none_without_thumbnail(self, db, blobs, make_user):
        user_id = make_user()
        character_id = create(db, user_id)
        data = characters.get_character_by_id(db, blobs, user_id, character_id)
        assert data["thumbnail_url"] is None
        assert data["image_count"] == 0


class TestUpdateCharacter:
    def test_partial_update_keeps_other_fields(self, db, make_user):
        user_id = make_user()
        character_id = create(db, user_id, setting="forest")
        characters.update_character(db, user_id, character_id, personality="grumpy")

        character = db.query(Character).filter(Character.id == character_id).first()
        assert character.personality == "grumpy"
        assert character.setting == "forest"
        assert character.slug == "sakura"

    def test_empty_string_clears_optional_field(self, db, make_user):
        user_id = make_user()
        character_id = create(db, user_id, setting="forest", age="adult")
        characters.update_character(db, user_id, character_id, setting="", age="  ")

        character = db.query(Character).filter(Character.id == character_id).first()
        assert character.setting is None
        assert character.age is None

    def test_rename_rederives_slug(self, db, make_user):
        user_id = make_user()
        character_id = create(db, user_id)
        characters.update_character(db, user_id, character_id, name="Sakura Prime")

        character = db.query(Character).filter(Character.id == character_id).first()
        assert character.name == "Sakura Prime"
        assert character.slug == "sakura-prime"

    def test_rename_into_existing_slug_conflicts(self, db, make_user):
        user_id = make_user()
        create(db, user_id, name="Kai")
        character_id = create(db, user_id, name="Sakura")
        with pytest.raises(ErrorWithCode) as exc:
            characters.update_character(db, user_id, character_id, name="KAI")
        assert exc.value.code == "CONFLICT"

    def test_unique_constraint_catches_concurrent_rename(self, db, make_user):
        user_id = make_user()
        create(db, user_id, name="Kai")
        character_id = create(db, user_id, name="Sakura")
        with patch("app.core.characters._slug_taken", return_value=False):
            with pytest.raises(ErrorWithCode) as exc:
                characters.update_character(db, user_id, character_id, name="Kai")
        assert exc.value.code == "CONFLICT"

        character = db.query(Character).filter(Character.id == character_id).first()
        assert (character.name, character.slug) == ("Sakura", "sakura")

    def test_rename_to_non_latin_name(self, db, make_user):
        user_id = make_user()
        character_id = create(db, user_id)
        characters.update_character(db, user_id, character_id, name="さくら")

        character = db.query(Character).filter(Character.id == character_id).first()
        assert character.name == "さくら"
        assert character.slug == ""

    def test_blank_required_field_rejected(self, db, make_user):
        user_id = make_user()
        character_id = create(db, user_id)
        with pytest.raises(ErrorWithCode) as exc:
            characters.update_character(db, user_id, character_id, appearance="  ")
        assert exc.value.code == "VALIDATION_ERROR"

    def test_not_found_and_forbidden(self, db, make_user):
        alice, bob = make_user(), make_user()
        character_id = create(db, alice)

        with pytest.raises(ErrorWithCode) as exc:
            characters.update_character(db, alice, str(uuid4()), name="X")
        assert exc.value.code == "NOT_FOUND"

        with pytest.raises(ErrorWithCode) as exc:
            characters.update_character(db, bob, character_id, name="Stolen")
        assert exc.value.code == "FORBIDDEN"

        character = db.query(Character).filter(Character.id == character_id).first()
        assert character.name == "Sakura"


class TestDeleteCharacter:
    def test_cascades_images_videos_and_blobs(self, db, blobs, make_user, stored_files):
        user_id = make_user()
        character_id = create(db, user_id)
        other_id = create(db, user_id, name="Kai")
        image = add_image(db, blobs, character_id)
        add_image(db, blobs, character_id, generation_type="image-to-image", source_image_id=image.id)
        add_video(db, blobs, character_id, image.id)
        kept = add_image(db, blobs, other_id)
        assert len(stored_files()) == 4

        characters.delete_character(db, blobs, user_id, character_id)

        assert characters.get_character_by_id(db, blobs, user_id, character_id) is None
        assert db.query(Image).filter(Image.character_id == character_id).count() == 0
        assert db.query(Video).filter(Video.character_id == character_id).count() == 0
        assert stored_files() == [kept.storage_id]

    def test_other_owner_cannot_delete(self, db, blobs, make_user):
        alice, bob = make_user(), make_user()
        character_id = create(db, alice)
        with pytest.raises(ErrorWithCode) as exc:
            characters.delete_character(db, blobs, bob, character_id)
        assert exc.value.code == "FORBIDDEN"
        assert characters.get_character_by_id(db, blobs, alice, character_id) is not None


class TestThumbnail:
    def test_image_of_another_character_is_rejected(self, db, blobs, make_user):
        user_id = make_user()
        character_id = create(db, user_id)
        other_id = create(db, user_id, name="Kai")
        foreign_image = add_image(db, blobs, other_id)
        with pytest.raises(ErrorWithCode) as exc:
            characters.update_character_thumbnail(db, user_id, character_id, foreign_image.id)
        assert exc.value.code == "NOT_FOUND"


class TestImagesAndVideos:
    def test_source_image_must_share_character(self, db, blobs, make_user):
        user_id = make_user()
        character_id = create(db, user_id)
        other_id = create(db, user_id, name="Kai")
        foreign = add_image(db, blobs, other_id)
        with pytest.raises(ErrorWithCode) as exc:
            add_image(db, blobs, character_id, generation_type="image-to-image", source_image_id=foreign.id)
        assert exc.value.code == "VALIDATION_ERROR"

    def test_image_detail_includes_character(self, db, blobs, make_user):
        user_id = make_user()
        character_id = create(db, user_id)
        image = add_image(db, blobs, character_id)
        data = images.get_image_by_id(db, blobs, user_id, image.id)
        assert data["url"] == f"http://testserver/storage/{image.storage_id}"
        assert data["character"]["id"] == character_id
        assert images.get_image_by_id(db, blobs, make_user(), image.id) is None

    def test_delete_image_clears_thumbnail(self, db, blobs, make_user, stored_files):
        user_id = make_user()
        character_id = create(db, user_id)
        image = add_image(db, blobs, character_id)
        characters.update_character_thumbnail(db, user_id, character_id, image.id)

        images.delete_image(db, blobs, user_id, image.id)

        character = db.query(Character).filter(Character.id == character_id).first()
        assert character.thumbnail_image_id is None
        assert stored_files() == []

    def test_delete_foreign_image_is_not_found(self, db, blobs, make_user):
        user_id = make_user()
        image = add_image(db, blobs, create(db, user_id))
        with pytest.raises(ErrorWithCode) as exc:
            images.delete_image(db, blobs, make_user(), image.id)
        assert exc.value.code == "NOT_FOUND"
        assert db.query(Image).count() == 1

    def test_video_details(self, db, blobs, make_user):
        user_id = make_user()
        character_id = create(db, user_id)
        image = add_image(db, blobs, character_id)
        video = add_video(db, blobs, character_id, image.id)

        listed = videos.get_character_videos(db, blobs, user_id, character_id)
        assert listed[0]["source_image_prompt"] == "smiling"
        assert listed[0]["fps"] == 24

        detail = videos.get_video_by_id(db, blobs, user_id, video.id)
        assert detail["source_image"]["id"] == image.id
        assert detail["character"]["id"] == character_id

    def test_video_survives_source_image_deletion(self, db, blobs, make_user):
        user_id = make_user()
        character_id = create(db, user_id)
        image = add_image(db, blobs, character_id)
        video = add_video(db, blobs, character_id, image.id)
        images.delete_image(db, blobs, user_id, image.id)

        detail = videos.get_video_by_id(db, blobs, user_id, video.id)
        assert detail["source_image"] is None
        assert detail["source_image_url"] is None

    def test_delete_video(self, db, blobs, make_user, stored_files):
        user_id = make_user()
        character_id = create(db, user_id)
        image = add_image(db, blobs, character_id)
        video = add_video(db, blobs, character_id, image.id)

        with pytest.raises(ErrorWithCode):
            videos.delete_video(db, blobs, make_user(), video.id)

        videos.delete_video(db, blobs, user_id, video.id)
        assert videos.get_video_by_id(db, blobs, user_id, video.id) is None
        assert stored_files() == [image.storage_id]
