"""Form contract validators."""

from ..validation import Validator
from .contracts import AuthorFormContract, BookFormContract, GenreFormContract
from .entities import NAME_MAX_LENGTH


class AuthorFormValidator(Validator[AuthorFormContract]):
    display_names = {"name": "Name", "birth_date": "BirthDate"}

    def validate_name(self, value):
        self.max_length("name", value, NAME_MAX_LENGTH)

    def validate_birth_date(self, value):
        self.required("birth_date", value)


class BookFormValidator(Validator[BookFormContract]):
    display_names = {
        "name": "Name",
        "release_date": "ReleaseDate",
        "author_id": "AuthorId",
        "genre_id": "GenreId",
    }

    def validate_name(self, value):
        self.max_length("name", value, NAME_MAX_LENGTH)

    def validate_release_date(self, value):
        self.required("release_date", value)

    def validate_author_id(self, value):
        self.required("author_id", value)

    def validate_genre_id(self, value):
        self.required("genre_id", value)


class GenreFormValidator(Validator[GenreFormContract]):
    display_names = {"name": "Name"}

    def validate_name(self, value):
        self.max_length("name", value, NAME_MAX_LENGTH)
