"""Body measurements and their monthly averages."""

from dataclasses import dataclass
from datetime import datetime

from ..utils.dates import format_datetime, parse_datetime

# Python attribute -> backend key, for the values a user records
MEASUREMENT_WIRE_FIELDS = {
    "date": "fecha",
    "weight": "peso",
    "height": "altura",
    "body_fat": "porcentajeGrasa",
    "arm": "circunferenciaBrazo",
    "chest": "circunferenciaPecho",
    "waist": "circunferenciaCintura",
    "thigh": "circunferenciaMuslo",
    "notes": "notas",
}


@dataclass
class Measurement:
    """One dated set of body measurements.

    Weight is in kg, height and circumferences in cm. ``bmi`` is computed
    by the backend.
    """

    id: int
    user_id: int
    date: datetime | None
    weight: float | None = None
    height: float | None = None
    bmi: float | None = None
    body_fat: float | None = None  # percent
    arm: float | None = None
    chest: float | None = None
    waist: float | None = None
    thigh: float | None = None
    notes: str | None = None

    def to_dict(self) -> dict:
        data = {"medicionID": self.id, "usuarioID": self.user_id, "imc": self.bmi}
        for attr, key in MEASUREMENT_WIRE_FIELDS.items():
            value = getattr(self, attr)
            data[key] = format_datetime(value) if attr == "date" else value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Measurement":
        values = {
            attr: data.get(key) for attr, key in MEASUREMENT_WIRE_FIELDS.items() if attr != "date"
        }
        return cls(
            id=int(data["medicionID"]),
            user_id=int(data.get("usuarioID", 0) or 0),
            date=parse_datetime(data.get("fecha")),
            bmi=data.get("imc"),
            **values,
        )


def measurement_payload(user_id: int | None = None, **fields) -> dict:
    """Build a create/update body from attribute names, omitting unset fields."""
    payload = {}
    if user_id is not None:
        payload["usuarioID"] = user_id
    for attr, value in fields.items():
        if value is None:
            continue
        key = MEASUREMENT_WIRE_FIELDS[attr]
        payload[key] = format_datetime(value) if attr == "date" else value
    return payload


@dataclass
class MeasurementSummary:
    """Averages over one calendar month, for charting progress."""

    year: int
    month: int
    average_weight: float | None = None
    average_bmi: float | None = None
    average_body_fat: float | None = None
    average_waist: float | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "MeasurementSummary":
        return cls(
            year=int(data["anio"]),
            month=int(data["mes"]),
            average_weight=data.get("pesoPromedio"),
            average_bmi=data.get("imcPromedio"),
            average_body_fat=data.get("grasaPromedio"),
            average_waist=data.get("cinturaPromedio"),
        )
