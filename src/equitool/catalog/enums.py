"""Shared machining vocabulary and the static lookup tables built on it."""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Mapping


class Brand(str, Enum):
    TUNGALOY = "Tungaloy"
    TOOLFLO = "Toolflo"
    NTK = "NTK"
    MORSE = "Morse"


class InputKind(str, Enum):
    TEXT = "text"
    IMAGE = "image"
    PDF = "pdf"

    @property
    def is_binary(self) -> bool:
        return self is not InputKind.TEXT


class Operation(str, Enum):
    TURNING = "Turning"
    MILLING = "Milling"
    HOLEMAKING = "Holemaking"
    THREADING = "Threading"
    GROOVING = "Grooving"


class SubOperation(str, Enum):
    EXTERNAL_TURNING = "External Turning"
    INTERNAL_TURNING = "Internal Turning"

    SC_MILLING = "SC Milling"
    SC_BALL_NOSE = "SC Ball Nose"
    SC_BULL_NOSE = "SC Bull Nose"
    HI_FEED_INSERT = "Hi-Feed (Insert)"
    SHOULDER_INSERT = "Shoulder (Insert)"
    FACE_INSERT = "Face (Insert)"

    SC_DRILL = "SC Drill"
    U_DRILL = "U-Drill"
    MODULAR_DRILL = "Modular Drill"
    BTA_DRILL = "BTA Drill"
    GUN_DRILL = "Gun Drill"

    THREAD_TURNING_EXT = "Thread Turning (Ext)"
    THREAD_TURNING_INT = "Thread Turning (Int)"
    THREAD_MILL_EXT_SC = "Thread Mill (Ext - SC)"
    THREAD_MILL_INT_SC = "Thread Mill (Int - SC)"
    THREAD_MILL_EXT_INSERT = "Thread Mill (Ext - Insert)"
    THREAD_MILL_INT_INSERT = "Thread Mill (Int - Insert)"

    EXTERNAL_GROOVING = "External Grooving"
    INTERNAL_GROOVING = "Internal Grooving"
    PARTING = "Parting"


class Material(str, Enum):
    """ISO 513 workpiece material groups."""

    P = "P (Steel)"
    M = "M (Stainless)"
    K = "K (Cast Iron)"
    N = "N (Non-Ferrous)"
    S = "S (Superalloys)"
    H = "H (Hardened)"


class Coolant(str, Enum):
    WET = "Wet"
    DRY = "Dry"
    MQL = "MQL"
    HIGH_PRESSURE = "High Pressure"


class Expectation(str, Enum):
    CYCLE_TIME_REDUCTION = "Cycle Time Reduction"
    COST_REDUCTION = "Cost Reduction"
    TOOL_LIFE_IMPROVEMENT = "Tool Life Improvement"
    SURFACE_FINISH = "Surface Finish"
    PROCESS_SECURITY = "Process Security"


class ReplacementStrategy(str, Enum):
    INSERT_ONLY = "INSERT_ONLY"
    FULL_ASSEMBLY = "FULL_ASSEMBLY"


class Role(str, Enum):
    USER = "user"
    MODEL = "model"


BRAND_SPECIALTIES: Mapping[Brand, str] = MappingProxyType(
    {
        Brand.TUNGALOY: "General Purpose (Turning, Milling, Drilling)",
        Brand.TOOLFLO: "Threading & Grooving Specialists",
        Brand.NTK: "Ceramics & Miniature Machining",
        Brand.MORSE: "Solid Carbide Endmills & Drills",
    }
)

OPERATION_MAP: Mapping[Operation, tuple[SubOperation, ...]] = MappingProxyType(
    {
        Operation.TURNING: (
            SubOperation.EXTERNAL_TURNING,
            SubOperation.INTERNAL_TURNING,
        ),
        Operation.MILLING: (
            SubOperation.SC_MILLING,
            SubOperation.SC_BALL_NOSE,
            SubOperation.SC_BULL_NOSE,
            SubOperation.HI_FEED_INSERT,
            SubOperation.SHOULDER_INSERT,
            SubOperation.FACE_INSERT,
        ),
        Operation.HOLEMAKING: (
            SubOperation.SC_DRILL,
            SubOperation.U_DRILL,
            SubOperation.MODULAR_DRILL,
            SubOperation.BTA_DRILL,
            SubOperation.GUN_DRILL,
        ),
        Operation.THREADING: (
            SubOperation.THREAD_TURNING_EXT,
            SubOperation.THREAD_TURNING_INT,
            SubOperation.THREAD_MILL_EXT_SC,
            SubOperation.THREAD_MILL_INT_SC,
            SubOperation.THREAD_MILL_EXT_INSERT,
            SubOperation.THREAD_MILL_INT_INSERT,
        ),
        Operation.GROOVING: (
            SubOperation.EXTERNAL_GROOVING,
            SubOperation.INTERNAL_GROOVING,
            SubOperation.PARTING,
        ),
    }
)

CONDITIONS_MAP: Mapping[Operation, tuple[str, ...]] = MappingProxyType(
    {
        Operation.TURNING: (
            "Continuous / Smooth",
            "Light Interruption",
            "Heavy Interruption (Scale)",
            "Hardened Skin / Case",
            "Thin Wall / Unstable",
        ),
        Operation.MILLING: (
            "Solid Block",
            "Casting / Forging Skin",
            "Weldment",
            "Long Overhang",
            "Unstable Fixturing",
        ),
        Operation.HOLEMAKING: (
            "Solid Material",
            "Stacked Plates",
            "Cross Holes / Interrupted",
            "Angled Entry / Exit",
            "Pre-cast Hole",
        ),
        Operation.THREADING: (
            "Uniform Stock",
            "Hardened Surface",
            "Interrupted Thread",
            "Thin Walled Pipe",
        ),
        Operation.GROOVING: (
            "Solid Bar",
            "Tube / Pipe",
            "Interrupted Cut",
            "Deep Groove",
        ),
    }
)

FAILURES_MAP: Mapping[Operation, tuple[str, ...]] = MappingProxyType(
    {
        Operation.TURNING: (
            "Flank Wear (Normal)",
            "Crater Wear",
            "Notch Wear (Depth of Cut)",
            "Plastic Deformation",
            "Chip Control / Bird Nesting",
            "Vibration / Chatter",
            "Catastrophic Breakage",
        ),
        Operation.MILLING: (
            "Flank Wear",
            "Thermal Cracking",
            "Chipping (Cutting Edge)",
            "Built-up Edge (Sticky)",
            "Vibration / Chatter",
            "Insert Breakage",
        ),
        Operation.HOLEMAKING: (
            "Chipping at Center",
            "Outer Corner Wear",
            "Margin Wear",
            "Chip Packing",
            "Drill Breakage",
            "Oversized Hole",
        ),
        Operation.THREADING: (
            "Burrs",
            "Torn Thread Surface",
            "Chipping on Trailing Edge",
            "Incorrect Pitch / Profile",
            "Vibration",
        ),
        Operation.GROOVING: (
            "Chip Jamming",
            "Insert Pull-out",
            "Concave / Convex Wall",
            "Pip at Center (Parting)",
            "Blade Breakage",
        ),
    }
)

MACHINE_CONFIG: Mapping[Operation, tuple[str, str]] = MappingProxyType(
    {
        Operation.TURNING: (
            "Machine Interface / Shank",
            "e.g. 25mm Sq Shank, VDI 40, BMT 55, Swiss",
        ),
        Operation.MILLING: (
            "Spindle Taper / Power",
            "e.g. BT40 15kW, CAT50 High Torque, HSK-A63",
        ),
        Operation.HOLEMAKING: (
            "Tool Holding Method",
            "e.g. ER32, Hydraulic Chuck, Side Lock, Lathe Turret",
        ),
        Operation.THREADING: (
            "Holder Size / Type",
            "e.g. 16x16 Shank, 20mm Boring Bar, Capto C4",
        ),
        Operation.GROOVING: (
            "Machine Interface",
            "e.g. 20x20 Shank, 32mm Block, Swiss",
        ),
    }
)

_SUB_TO_OPERATION: Mapping[SubOperation, Operation] = MappingProxyType(
    {sub: op for op, subs in OPERATION_MAP.items() for sub in subs}
)


def sub_operations(operation: Operation) -> tuple[SubOperation, ...]:
    return OPERATION_MAP[operation]


def operation_for(sub_operation: SubOperation) -> Operation:
    """Return the operation family a sub-operation belongs to."""
    return _SUB_TO_OPERATION[sub_operation]
