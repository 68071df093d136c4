"""Fixed-size person records stored in data blocks."""

from __future__ import annotations

import random
import struct
from dataclasses import dataclass

_LAYOUT = struct.Struct("<i15s20s20sx")
RECORD_SIZE = _LAYOUT.size

_NAME_WIDTH = 15
_SURNAME_WIDTH = 20
_CITY_WIDTH = 20
_INT_MIN = -(2**31)
_INT_MAX = 2**31 - 1

NAMES = (
    "Alexandros",
    "Sofia",
    "Dimitris",
    "Anna",
    "Konstantinos",
    "Maria",
    "Georgios",
    "Eleni",
    "Petros",
    "Evangelia",
)

SURNAMES = (
    "Papadopoulos",
    "Georgiou",
    "Dimitriou",
    "Anagnostopoulos",
    "Karagiannis",
    "Mavromatis",
    "Nikolaou",
    "Christodoulou",
    "Kostopoulos",
    "Stamatopoulos",
)

CITIES = (
    "Athina",
    "Patra",
    "Irakleio",
    "Larisa",
    "Volos",
    "Ioannina",
    "Chania",
    "Kalamata",
    "Rodos",
)


def _encode(text: str, width: int, field_name: str) -> bytes:
    raw = text.encode("utf-8")
    if len(raw) >= width:
        raise ValueError(f"{field_name} {text!r} does not fit in {width - 1} bytes")
    return raw


def _decode(raw: bytes) -> str:
    return raw.split(b"\0", 1)[0].decode("utf-8", errors="replace")


@dataclass(frozen=True)
class Record:
    """A person record keyed by ``id``."""

    id: int
    name: str = ""
    surname: str = ""
    city: str = ""

    def pack(self) -> bytes:
        """Encode the record into its fixed on-disk layout."""
        if not _INT_MIN <= self.id <= _INT_MAX:
            raise ValueError(f"id {self.id} does not fit in 32 bits")
        return _LAYOUT.pack(
            self.id,
            _encode(self.name, _NAME_WIDTH, "name"),
            _encode(self.surname, _SURNAME_WIDTH, "surname"),
            _encode(self.city, _CITY_WIDTH, "city"),
        )

    @classmethod
    def unpack(cls, data: bytes) -> Record:
        """Decode a record from the first RECORD_SIZE bytes of ``data``."""
        if len(data) < RECORD_SIZE:
            raise ValueError(f"need {RECORD_SIZE} bytes, got {len(data)}")
        record_id, name, surname, city = _LAYOUT.unpack_from(data)
        return cls(record_id, _decode(name), _decode(surname), _decode(city))

    def __str__(self) -> str:
        return f"({self.id},{self.name},{self.surname},{self.city})"


def random_record(rng: random.Random | None = None) -> Record:
    """Build a record with an id below 1000 and random name, surname and city."""
    rng = rng or random.Random()
    return Record(
        id=rng.randrange(1000),
        name=rng.choice(NAMES),
        surname=rng.choice(SURNAMES),
        city=rng.choice(CITIES),
    )