"""HL7v2 code tables used to render human-readable text next to coded values.

Every lookup falls back to the raw code, so an unknown code never aborts a
message build.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping


ADMINISTRATIVE_SEX: Mapping[str, str] = MappingProxyType({
    "M": "Male",
    "F": "Female",
    "U": "Unknown",
    "A": "Ambiguous",
    "N": "Not applicable",
    "O": "Other",
})

PATIENT_CLASS: Mapping[str, str] = MappingProxyType({
    "E": "Emergency",
    "I": "Inpatient",
    "O": "Outpatient",
    "P": "Preadmit",
    "R": "Recurring patient",
    "B": "Obstetrics",
    "C": "Commercial Account",
    "N": "Not Applicable",
    "U": "Unknown",
})

ORDER_STATUS: Mapping[str, str] = MappingProxyType({
    "A":  "Some, but not all, results available",
    "CA": "Order was canceled",
    "CM": "Order is completed",
    "DC": "Order was discontinued",
    "ER": "Error, order not found",
    "HD": "Order is on hold",
    "IP": "In process, unspecified",
    "RP": "Order has been replaced",
    "SC": "In process, scheduled",
})

PRIORITY: Mapping[str, str] = MappingProxyType({
    "S": "Stat",
    "A": "ASAP",
    "R": "Routine",
    "P": "Preoperative",
    "C": "Callback",
    "T": "Timing critical",
})

# HL7 table 0162
ROUTE: Mapping[str, str] = MappingProxyType({
    "PO":   "Oral",
    "IV":   "Intravenous",
    "IM":   "Intramuscular",
    "SC":   "Subcutaneous",
    "INH":  "Inhalation",
    "TOP":  "Topical",
    "PR":   "Rectal",
    "PV":   "Vaginal",
    "SL":   "Sublingual",
    "BUCC": "Buccal",
    "NAS":  "Nasal",
    "OPH":  "Ophthalmic",
    "OT":   "Otic",
    "TD":   "Transdermal",
    "NG":   "Nasogastric",
    "GT":   "Gastrostomy tube",
})

UNITS_OF_MEASURE: Mapping[str, str] = MappingProxyType({
    "TAB": "Tablet",
    "CAP": "Capsule",
    "ML":  "Milliliter",
    "MG":  "Milligram",
    "G":   "Gram",
    "MCG": "Microgram",
    "L":   "Liter",
    "CM":  "Centimeter",
    "KG":  "Kilogram",
    "MEQ": "Milliequivalent",
    "IU":  "International Unit",
    "HR":  "Hour",
    "DAY": "Day",
    "WK":  "Week",
    "MO":  "Month",
})

MEDICATION_FORM: Mapping[str, str] = MappingProxyType({
    "TAB": "Tablet",
    "CAP": "Capsule",
    "SYR": "Syrup",
    "SUS": "Suspension",
    "INJ": "Injection",
    "CRE": "Cream",
    "OIN": "Ointment",
    "SUP": "Suppository",
    "SOL": "Solution",
    "POW": "Powder",
    "GEL": "Gel",
    "LOT": "Lotion",
    "AER": "Aerosol",
    "PAS": "Paste",
    "FIL": "Film",
    "IMP": "Implant",
})

ROUTE_TABLE_ID = "HL70162"

CODE_TABLES: Mapping[str, Mapping[str, str]] = MappingProxyType({
    "administrative_sex": ADMINISTRATIVE_SEX,
    "patient_class":      PATIENT_CLASS,
    "order_status":       ORDER_STATUS,
    "priority":           PRIORITY,
    "route":              ROUTE,
    "units_of_measure":   UNITS_OF_MEASURE,
    "medication_form":    MEDICATION_FORM,
})


def describe(table: str, code: str) -> str:
    """Return the description for ``code`` in ``table``, or ``code`` itself."""
    return CODE_TABLES.get(table, {}).get(code, code)
