"""Built-in checklist definitions, one per inspection type."""

from __future__ import annotations

from typing import Iterable, Sequence

from .models import ChecklistCategory, ChecklistDefinition, ChecklistItemDefinition

# (item id, text, critical, description)
_ItemSpec = tuple[str, str, bool, str]


def _category(category_id: str, name: str, items: Iterable[_ItemSpec]) -> ChecklistCategory:
    return ChecklistCategory(
        id=category_id,
        name=name,
        items=tuple(
            ChecklistItemDefinition(
                id=item_id,
                text=text,
                category=category_id,
                critical=critical,
                description=description,
            )
            for item_id, text, critical, description in items
        ),
    )


LADDER = ChecklistDefinition(
    inspection_type="ladder",
    title="Ladder Inspection",
    subject_type="ladder",
    categories=(
        _category("structure", "Structure", [
            ("side_rails", "Side Rails", True, "Check for cracks, bends, dents, or corrosion"),
            ("rungs_steps", "Rungs/Steps", True, "Check for damage, looseness, missing rungs, or grease"),
            ("welds_rivets", "Welds & Rivets", True, "Check all welds and rivets for cracks or looseness"),
            ("hardware", "Hardware/Bolts", True, "Check all bolts, nuts, and hardware are tight"),
            ("straight", "Straightness", True, "Ladder sits flat, no twisting or warping"),
        ]),
        _category("mechanical", "Mechanical", [
            ("spreaders", "Spreader/Locking Arms", True, "Check spreader bars lock properly and hold firm"),
            ("rung_locks", "Rung Locks", True, "Check extension ladder rung locks engage properly"),
            ("rope_pulley", "Rope & Pulley", False, "Check rope condition and pulley operation (extension)"),
        ]),
        _category("safety", "Safety", [
            ("feet_pads", "Feet/Safety Pads", True, "Check non-slip feet/pads are present and in good condition"),
            ("labels", "Safety Labels", False, "Check duty rating and safety labels are legible"),
        ]),
        _category("condition", "Condition", [
            ("clean", "Cleanliness", False, "Ladder free of oil, grease, or other slippery substances"),
            ("fiberglass", "Fiberglass Condition", True, "No chips, cracks, or exposed fibers (fiberglass only)"),
        ]),
    ),
)


FORKLIFT_PRESHIFT = ChecklistDefinition(
    inspection_type="forklift_preshift",
    title="Forklift Pre-Shift Inspection",
    subject_type="forklift",
    categories=(
        _category("general", "General", [
            ("visual_damage", "Visual Inspection", True, "Check for visible damage, leaks, or cracks"),
            ("fluid_leaks", "Fluid Leaks", True, "Check for oil, hydraulic, coolant, or fuel leaks"),
            ("tires_wheels", "Tires/Wheels", True, "Check tire condition, wear, and wheel lug nuts"),
        ]),
        _category("load_handling", "Load Handling", [
            ("forks", "Forks Condition", True, "Check for cracks, bends, wear, and positioning locks"),
            ("mast_chains", "Mast & Chains", True, "Check mast rails and lift chains for wear/damage"),
            ("hydraulics", "Hydraulic System", True, "Check hydraulic hoses, cylinders, and operation"),
        ]),
        _category("controls", "Controls", [
            ("brakes", "Brakes", True, "Test service brake and parking brake function"),
            ("steering", "Steering", True, "Check steering responsiveness and play"),
            ("gauges", "Gauges & Instruments", False, "Verify all gauges and warning indicators work"),
        ]),
        _category("safety_devices", "Safety Devices", [
            ("horn", "Horn", True, "Test horn for proper operation"),
            ("lights", "Lights", False, "Check headlights, taillights, and warning lights"),
            ("backup_alarm", "Backup Alarm", True, "Test backup alarm for proper operation"),
            ("seatbelt", "Seatbelt/Restraint", True, "Check seatbelt condition and latching"),
            ("overhead_guard", "Overhead Guard", True, "Check overhead guard for damage and secure mounting"),
        ]),
        _category("power", "Power", [
            ("battery_fuel", "Battery/Fuel Level", False, "Check battery charge or fuel level adequate"),
            ("battery_connections", "Battery Connections", False, "Check battery terminals and cable condition"),
        ]),
    ),
)


EYEWASH = ChecklistDefinition(
    inspection_type="eyewash",
    title="Eyewash / Safety Shower Inspection",
    subject_type="station",
    categories=(
        _category("accessibility", "Accessibility & Signage", [
            ("acc1", "Station clearly marked with signage", False, ""),
            ("acc2", "Path to station unobstructed", True, ""),
            ("acc3", "Located within 10-second travel distance", True, ""),
            ("acc4", "Area well-lit", False, ""),
            ("acc5", 'No obstacles within 18" of station', False, ""),
            ("acc6", "Emergency contact information posted", False, ""),
        ]),
        _category("eyewash", "Eyewash Unit", [
            ("eye1", "Dust covers in place (if equipped)", False, ""),
            ("eye2", "Activation tested - water flows freely", True, ""),
            ("eye3", "Hands-free operation functional", True, ""),
            ("eye4", "Both nozzles produce equal spray pattern", False, ""),
            ("eye5", "Water runs clear (flushed until clear)", False, ""),
            ("eye6", "Bowl/basin drains properly", False, ""),
            ("eye7", "No leaks when not activated", False, ""),
        ]),
        _category("shower", "Safety Shower", [
            ("shw1", "Pull handle/chain accessible", True, ""),
            ("shw2", "Activation tested - water flows", True, ""),
            ("shw3", 'Shower head at proper height (82-96")', False, ""),
            ("shw4", "Adequate water flow/pressure", True, ""),
            ("shw5", "Water runs clear", False, ""),
            ("shw6", "Floor drain functional (if equipped)", False, ""),
            ("shw7", "No leaks when not activated", False, ""),
        ]),
        _category("water", "Water Quality & Temperature", [
            ("wat1", "Water temperature tepid (60-100°F)", True, ""),
            ("wat2", "Water appears clean and clear", False, ""),
            ("wat3", "No unusual odor", False, ""),
            ("wat4", "No visible sediment or particles", False, ""),
            ("wat5", "Flushed for minimum 3 minutes", False, ""),
        ]),
        _category("condition", "Physical Condition", [
            ("cond1", "Unit clean and free of debris", False, ""),
            ("cond2", "No corrosion or rust", False, ""),
            ("cond3", "Piping in good condition", False, ""),
            ("cond4", "Mounting secure and stable", False, ""),
            ("cond5", "All components intact", False, ""),
        ]),
    ),
)


DAILY_SAFETY_WALK = ChecklistDefinition(
    inspection_type="daily_safety_walk",
    title="Daily Safety Walk",
    subject_type="area",
    categories=(
        _category("housekeeping", "Housekeeping", [
            ("hk1", "Aisles and walkways clear of obstructions", False, ""),
            ("hk2", "Work areas clean and organized", False, ""),
            ("hk3", "Spills cleaned up promptly", False, ""),
            ("hk4", "Trash receptacles not overflowing", False, ""),
            ("hk5", "Materials stored properly", False, ""),
            ("hk6", "No trip hazards present", False, ""),
            ("hk7", "Floor markings visible and intact", False, ""),
        ]),
        _category("ppe", "PPE Compliance", [
            ("ppe1", "All employees wearing required PPE", False, ""),
            ("ppe2", "PPE in good condition", False, ""),
            ("ppe3", "Safety glasses worn where required", False, ""),
            ("ppe4", "Hearing protection worn in designated areas", False, ""),
            ("ppe5", "Proper footwear being worn", False, ""),
            ("ppe6", "Gloves worn for appropriate tasks", False, ""),
        ]),
        _category("fire", "Fire Safety", [
            ("fire1", "Fire extinguishers accessible and unobstructed", True, ""),
            ("fire2", "Fire extinguisher inspection tags current", False, ""),
            ("fire3", "Emergency exits clear and unlocked", True, ""),
            ("fire4", "Exit signs illuminated", False, ""),
            ("fire5", "No combustibles near heat sources", False, ""),
            ("fire6", 'Sprinkler heads unobstructed (18" clearance)', False, ""),
        ]),
    ),
)


FIRE_EXTINGUISHER = ChecklistDefinition(
    inspection_type="fire_extinguisher",
    title="Fire Extinguisher Monthly Inspection",
    subject_type="extinguisher",
    categories=(
        _category("placement", "Placement & Access", [
            ("location", "Extinguisher in Place", True, "Verify extinguisher is mounted in designated location"),
            ("accessible", "Access Clear", True, "No obstructions blocking access (3ft clearance)"),
            ("signage", "Signage Visible", False, "Location sign/marker clearly visible"),
            ("mounting", "Mounting Secure", False, "Bracket secure, proper height (max 5ft to handle)"),
        ]),
        _category("unit", "Unit Condition", [
            ("pressure", "Pressure Gauge", True, "Needle in green/charged zone"),
            ("seal", "Safety Seal Intact", True, "Tamper seal/pin in place and undamaged"),
            ("hose", "Hose/Nozzle Condition", True, "No cracks, blockages, or damage"),
            ("body", "Cylinder Condition", True, "No dents, rust, corrosion, or damage"),
            ("label", "Label Legible", False, "Operating instructions clearly readable"),
        ]),
        _category("service", "Service", [
            ("service_tag", "Service Tag Current", True, "Annual service within 12 months"),
        ]),
    ),
)


FIRST_AID_KIT = ChecklistDefinition(
    inspection_type="first_aid_kit",
    title="First Aid Kit Inspection",
    subject_type="kit",
    categories=(
        _category("general", "General Condition", [
            ("gen1", "Kit container clean and in good condition", False, ""),
            ("gen2", "Kit easily accessible and visible", False, ""),
            ("gen3", "First aid signage posted at kit location", False, ""),
            ("gen4", "Kit seal intact (if applicable)", False, ""),
            ("gen5", "Contents list/inventory sheet present", False, ""),
            ("gen6", "Emergency contact numbers posted", False, ""),
        ]),
        _category("bandages", "Bandages & Dressings", [
            ("band1", "Adhesive bandages (assorted sizes) - adequate supply", False, "Minimum 16"),
            ("band2", 'Gauze pads (3x3" or 4x4") - adequate supply', False, "Minimum 4"),
            ("band3", "Gauze roll bandage - adequate supply", False, "Minimum 2"),
            ("band4", "Triangular bandage/sling", False, "Minimum 1"),
            ("band5", "Elastic wrap bandage", False, "Minimum 1"),
            ("band6", "Butterfly closures/wound closure strips", False, ""),
            ("band7", "Eye pads/patches", False, "Minimum 2"),
            ("band8", "Knuckle/fingertip bandages", False, ""),
        ]),
        _category("antiseptic", "Antiseptic & Medications", [
            ("anti1", "Antiseptic wipes/swabs - adequate supply", False, "Minimum 10"),
            ("anti2", "Antibiotic ointment packets", False, "Minimum 6"),
            ("anti3", "Burn cream/gel packets", False, "Minimum 6"),
            ("anti4", "Hydrocortisone cream packets", False, ""),
            ("anti5", "Eye wash solution (saline)", False, ""),
            ("anti6", "Pain reliever (aspirin/ibuprofen) - not expired", False, ""),
            ("anti7", "All medications within expiration date", False, ""),
        ]),
        _category("tools", "Tools & Instruments", [
            ("tool1", "Scissors (medical grade)", False, "Minimum 1"),
            ("tool2", "Tweezers", False, "Minimum 1"),
            ("tool3", "Medical tape (cloth/paper)", False, "Minimum 1"),
            ("tool4", "Safety pins (assorted)", False, ""),
            ("tool5", "Splinter removal tool/needle", False, ""),
            ("tool6", "Instant cold pack", False, "Minimum 2"),
            ("tool7", "Disposable thermometer", False, ""),
        ]),
        _category("protection", "Protection & PPE", [
            ("prot1", "Disposable gloves (nitrile/latex) - adequate pairs", False, "Minimum 4"),
            ("prot2", "CPR breathing barrier/pocket mask", False, "Minimum 1"),
            ("prot3", "Biohazard waste bag", False, ""),
            ("prot4", "Hand sanitizer", False, ""),
            ("prot5", "Absorbent compress/blood stopper", False, ""),
        ]),
        _category("specialty", "Specialty Items", [
            ("spec1", "First aid instruction manual/guide", False, ""),
            ("spec2", "Emergency blanket (mylar)", False, ""),
            ("spec3", "Tourniquet (for severe bleeding)", False, ""),
            ("spec4", "Flashlight with batteries", False, ""),
            ("spec5", "Accident report forms", False, ""),
        ]),
    ),
)


_REGISTRY: dict[str, ChecklistDefinition] = {
    definition.inspection_type: definition
    for definition in (
        LADDER,
        FORKLIFT_PRESHIFT,
        EYEWASH,
        DAILY_SAFETY_WALK,
        FIRE_EXTINGUISHER,
        FIRST_AID_KIT,
    )
}


def checklist_types() -> Sequence[str]:
    return tuple(_REGISTRY)


def get_checklist(inspection_type: str) -> ChecklistDefinition:
    try:
        return _REGISTRY[inspection_type]
    except KeyError:
        raise KeyError(f"Unknown inspection type: {inspection_type}") from None


def register_checklist(definition: ChecklistDefinition, *, replace: bool = False) -> None:
    """Add a checklist type at runtime (e.g. site-specific checklists)."""
    if definition.inspection_type in _REGISTRY and not replace:
        raise ValueError(f"Checklist {definition.inspection_type!r} already registered")
    _REGISTRY[definition.inspection_type] = definition


__all__ = [
    "LADDER",
    "FORKLIFT_PRESHIFT",
    "EYEWASH",
    "DAILY_SAFETY_WALK",
    "FIRE_EXTINGUISHER",
    "FIRST_AID_KIT",
    "checklist_types",
    "get_checklist",
    "register_checklist",
]
