from __future__ import annotations

from dataclasses import dataclass

from ..models.sow_state import SectionTemplate, SowBuilderState

"""Scope-of-work section catalog.

The catalog is append-only: project files store section ids and variable names,
so existing entries keep their ids and placeholders. New sections go at the end.
"""

__all__ = [
    "SECTION_TEMPLATES",
    "SOW_VARIABLES",
    "SowVariable",
    "DEFAULT_ENABLED_SECTIONS",
    "catalog_ids",
    "default_state",
    "get_section",
]


SECTION_TEMPLATES: tuple[SectionTemplate, ...] = (
    SectionTemplate(
        id="install_cameras",
        title="Install Cameras according to hardware schedule",
        body="""Mount {{NEW_CAMERA_TOTAL}} new {{CAMERA_BRAND}} cameras, consisting of:
{{EXTERIOR_CAMERA_COUNT}} exterior cameras
{{INTERIOR_CAMERA_COUNT}} interior cameras
ALL Camera Mounting should be secure and level, according to manufacturer specs
Install approved junction boxes where required
Seal all exterior penetrations""",
    ),
    SectionTemplate(
        id="provide_cabling",
        title="Provide Cat6 Cabling",
        body="""Provide and install {{CAT6_COUNT}} new Cat6 data cables.
Indoor Cat6 (above-ceiling): Use space-rated cable (plenum where applicable)
Maintain min 2" separation from power lines unless an exception applies.
Supports: max 5 ft intervals, add within 12" of drops/terminations
Properly label each cable at each end
Approximate total cable length: {{CAT6_FOOTAGE}} ft.""",
    ),
    SectionTemplate(
        id="relocate_cameras",
        title="Relocate Existing Cameras",
        body="Relocate {{RELOCATE_COUNT}} existing cameras to new locations according to hardware schedule.",
    ),
    SectionTemplate(
        id="conduit_installation",
        title="Conduit Installation",
        body="""Provide and install conduit to protect exposed cabling where required.
Use listed transitions and raintight/wet-location fittings/boxes
Keep pull/junction points accessible
Strap EMT within 3 ft of terminations and max 10 ft intervals
Strap PVC within 3 ft of terminations and max 3 ft intervals
Estimated conduit length: {{CONDUIT_FOOTAGE}} ft.""",
    ),
    SectionTemplate(
        id="cable_termination",
        title="Cable Termination (Cat6)",
        body="""Terminate {{CAT6_COUNT}} Cat6 cables at designated locations
Terminate on Category-rated patch panels and keystone jacks (IDC) using T568B unless otherwise specified
No field-crimp RJ45 on horizontal cable unless MPTL is explicitly approved and tested.
Maintain pair twists to within 0.5 in (13 mm) of the termination, strip jacket only as needed
Provide strain relief, and dress cabling neat without damage.
Make device/outdoor terminations inside rated enclosures with wet-location/raintight components.""",
    ),
    SectionTemplate(
        id="testing_commissioning",
        title="Testing and Commissioning (CCTV)",
        body="""Test all newly installed and/or relocated cables.
Verify all cameras power on
Set IP addresses of Cameras and equipment according to schema obtained from PoC
Verify operational status of all cameras.
Confirm live video stream
Confirm proper focus and framing""",
    ),
    SectionTemplate(
        id="server_nvr",
        title="Server / NVR",
        body="""Install {{SERVER_TOTAL}} new {{SERVER_BRAND}} Server/NVR
Install {{NVR_COUNT}} NVR/VMS server(s).
Mount hardware and connect to power/UPS.
Connect and configure network settings according to IP Address schema obtained from PoC
Install/configure {{VMS_PLATFORM}}
Setup User access configuration
Apply {{CAMERA_LICENSES}} Camera Licenses
Enroll up to {{CAMERA_COUNT}} cameras.
Configure Motion, object detection, AI tools etc.
Configure Recording profile
Configure retention for approximately {{RETENTION_DAYS}} days.
Test live view, recording, and playback.""",
    ),
    SectionTemplate(
        id="wireless_ptp",
        title="Wireless Point-to-Point",
        body="""Provide and install {{PTP_COUNT}} wireless point-to-point bridge(s).
Mount radios securely at designated locations with proper alignment and weatherproofing.
Configure and test wireless link(s) for connectivity and throughput.
Remove default settings, and logins
Provide updated settings to PoC""",
    ),
    SectionTemplate(
        id="licenses",
        title="Licenses",
        body="""Provide and apply {{LICENSE_COUNT}} software/hardware license(s) as specified in the BOM.
Verify license activation and proper system registration.""",
    ),
    SectionTemplate(
        id="poe_switches",
        title="PoE Switches",
        body="""Provide and install {{POE_SWITCH_COUNT}} PoE network switch(es).
Rack-mount or surface-mount switches as directed.
Connect and configure switch ports for all PoE-powered devices.
Verify power delivery and network connectivity on all ports.""",
    ),
    SectionTemplate(
        id="poe_injectors",
        title="PoE Injectors",
        body="""Provide and install {{POE_INJECTOR_COUNT}} PoE injector(s) where dedicated PoE switch ports are not available.
Mount injectors in a secure, accessible location.
Verify proper power delivery to connected devices.""",
    ),
    SectionTemplate(
        id="mounts_accessories",
        title="Mounts & Accessories",
        body="""Provide and install {{MOUNT_COUNT}} mounting accessory(ies), including but not limited to:
Wall-mount arms, corner brackets, pendant mounts, pole adapters, and junction boxes as specified in the Hardware Schedule.
All mounts shall be installed properly and securely per manufacturer specifications.""",
    ),
    SectionTemplate(
        id="ac_install",
        title="Install Access Control",
        body="""Install access control hardware on {{DOOR_TOTAL}} doors:
{{RIP_REPLACE_COUNT}} rip-and-replace
{{NEW_DOOR_COUNT}} new door(s)""",
    ),
    SectionTemplate(
        id="ac_composite_cabling",
        title="Provide Composite Cabling",
        body="""Provide and install {{COMPOSITE_COUNT}} composite/multi conductor cable run(s) (approx. {{COMPOSITE_FOOTAGE}} ft total)
Provide and run {{CAT6_COUNT}} Cat6 cable run(s) for intercom/network devices
Use proper cable supports and label both ends of all cabling
Maintain separation from high-voltage wiring""",
    ),
    SectionTemplate(
        id="ac_controller",
        title="Controller Installation",
        body="""Install {{CONTROLLER_COUNT}} new {{CONTROLLER_BRAND}} door controllers
Secure controllers in accordance with manufacturer installation guidelines.
Connect Controller(s) to Fire Alarm Panel (if Applicable)""",
    ),
    SectionTemplate(
        id="ac_intercom",
        title="Intercom Installation",
        body="""Install {{INTERCOM_TOTAL}} new {{INTERCOM_BRAND}} intercom device(s).
Mount intercom units secure and level.""",
    ),
    SectionTemplate(
        id="ac_locking",
        title="Electric Locking Installation",
        body="""Provide and install {{LOCK_TOTAL}} new locking hardware device(s), consisting of:
{{ELECTRIC_STRIKE_COUNT}} electric strike(s)
{{MAGLOCK_COUNT}} magnetic lock(s)
{{MOTORIZED_LATCH_COUNT}} electrified latch release exit device(s)
{{OTHER_LOCK_COUNT}} other electrified locking device(s)
Remove existing hardware where required.
Prep door/frame as necessary for proper fit and operation.
Install {{POWER_TRANSFER_COUNT}} devices (hinge/loop) where required.
Verify proper mechanical operation prior to energizing.
Test fail-safe / fail-secure functionality.
Verify proper door alignment and latch engagement/disengagement""",
    ),
    SectionTemplate(
        id="ac_readers",
        title="Reader Installation",
        body="""Remove {{EXISTING_READER_COUNT}} existing readers
Install {{NEW_READER_COUNT}} new {{READER_BRAND}} readers""",
    ),
    SectionTemplate(
        id="ac_dps_rex",
        title="DPS, REX, Push Button Installation",
        body="""Install {{DPS_COUNT}} Door Position Sensors
Install {{REX_COUNT}} request to exits
Install {{PUSH_COUNTS}} push to exit buttons""",
    ),
    SectionTemplate(
        id="ac_power",
        title="Power & Batteries",
        body="""Mount {{POWER_SUPPLY_COUNT}} power supplies
Install batteries in {{POWER_SUPPLY_COUNT}} power supplies and {{CONTROLLER_COUNT}} new controllers
Verify correct charging voltage and backup operation.""",
    ),
    SectionTemplate(
        id="ac_termination",
        title="Cable Termination (Access Control)",
        body="""Terminate {{COMPOSITE_COUNT}} composite cables and {{CAT6_COUNT}} Cat6 cables using approved termination hardware
Label all field wiring within enclosures for serviceability.
Confirm controller, lock, REX, DPS, and reader connections as applicable.""",
    ),
    SectionTemplate(
        id="ac_testing",
        title="Testing & Commissioning (Access Control)",
        body="""Test all newly installed cabling
Configure panel settings and network parameters
Confirm system communication and operational status
Ensure all devices are securely mounted
Verify proper reader mounting height
Verify proper locking hardware alignment
Verify lock/unlock operation at all {{DOOR_TOTAL}} doors
Verify reader credential functionality
Verify DPS and REX operation
Verify intercom communication
Verify proper ADA compliance where required
Confirm fire marshal free egress compliance""",
    ),
    SectionTemplate(
        id="programming_cctv",
        title="Programming (CCTV)",
        body="""Configure IP addresses for all cameras according to schema obtained from PoC
Update camera firmware to latest stable version
Configure motion detection zones and sensitivity
Configure AI/analytics features as specified
Set up recording profiles (continuous, motion, schedule)
Configure video stream settings (resolution, frame rate, bitrate)
Verify live view, recording, and playback functionality""",
    ),
    SectionTemplate(
        id="programming_ac",
        title="Programming (Access Control)",
        body="""Program access control panels and controllers
Enroll credentials and configure cardholder access levels
Configure door schedules and access groups
Program REX, DPS, and lock timing parameters
Configure intercom call stations and directory
Set up alarm monitoring and event notifications
Configure fire alarm integration and emergency unlock sequences
Verify all programmed functions at each door""",
    ),
)


@dataclass(frozen=True)
class SowVariable:
    key: str
    label: str
    auto_fillable: bool


SOW_VARIABLES: tuple[SowVariable, ...] = (
    SowVariable("NEW_CAMERA_TOTAL", "New Camera Total", True),
    SowVariable("CAMERA_BRAND", "Camera Brand", True),
    SowVariable("EXTERIOR_CAMERA_COUNT", "Exterior Camera Count", False),
    SowVariable("INTERIOR_CAMERA_COUNT", "Interior Camera Count", False),
    SowVariable("CAT6_COUNT", "Cat6 Cable Count", True),
    SowVariable("CAT6_FOOTAGE", "Cat6 Total Footage", False),
    SowVariable("RELOCATE_COUNT", "Relocate Count", False),
    SowVariable("CONDUIT_FOOTAGE", "Conduit Footage", False),
    SowVariable("PTP_COUNT", "Point-to-Point Count", True),
    SowVariable("LICENSE_COUNT", "License Count", True),
    SowVariable("POE_SWITCH_COUNT", "PoE Switch Count", True),
    SowVariable("POE_INJECTOR_COUNT", "PoE Injector Count", True),
    SowVariable("MOUNT_COUNT", "Mount/Accessory Count", True),
    SowVariable("SERVER_TOTAL", "Server/NVR Total", True),
    SowVariable("SERVER_BRAND", "Server Brand", True),
    SowVariable("VMS_PLATFORM", "VMS Platform", True),
    SowVariable("CAMERA_LICENSES", "Camera Licenses", True),
    SowVariable("CAMERA_COUNT", "Camera Count", True),
    SowVariable("RETENTION_DAYS", "Retention Days", False),
    SowVariable("DOOR_TOTAL", "Door Total", False),
    SowVariable("RIP_REPLACE_COUNT", "Rip & Replace Count", False),
    SowVariable("NEW_DOOR_COUNT", "New Door Count", False),
    SowVariable("COMPOSITE_COUNT", "Composite Cable Count", False),
    SowVariable("COMPOSITE_FOOTAGE", "Composite Footage", False),
    SowVariable("CONTROLLER_COUNT", "Controller Count", True),
    SowVariable("CONTROLLER_BRAND", "Controller Brand", True),
    SowVariable("INTERCOM_TOTAL", "Intercom Total", True),
    SowVariable("INTERCOM_BRAND", "Intercom Brand", True),
    SowVariable("LOCK_TOTAL", "Lock Total", True),
    SowVariable("ELECTRIC_STRIKE_COUNT", "Electric Strike Count", True),
    SowVariable("MAGLOCK_COUNT", "Maglock Count", True),
    SowVariable("MOTORIZED_LATCH_COUNT", "Motorized Latch Count", True),
    SowVariable("OTHER_LOCK_COUNT", "Other Lock Count", False),
    SowVariable("POWER_TRANSFER_COUNT", "Power Transfer Count", True),
    SowVariable("EXISTING_READER_COUNT", "Existing Reader Count", False),
    SowVariable("NEW_READER_COUNT", "New Reader Count", True),
    SowVariable("READER_BRAND", "Reader Brand", True),
    SowVariable("DPS_COUNT", "DPS Count", True),
    SowVariable("REX_COUNT", "REX Count", True),
    SowVariable("PUSH_COUNTS", "Push Button Count", True),
    SowVariable("POWER_SUPPLY_COUNT", "Power Supply Count", True),
    SowVariable("PROGRAMMING_DETAILS", "Programming Details", False),
    SowVariable("PROGRAMMING_CCTV_DETAILS", "Programming CCTV Details", False),
    SowVariable("PROGRAMMING_AC_DETAILS", "Programming AC Details", False),
    SowVariable("NVR_COUNT", "NVR Count", True),
)

DEFAULT_ENABLED_SECTIONS: frozenset[str] = frozenset({
    "install_cameras",
    "provide_cabling",
    "cable_termination",
    "testing_commissioning",
})

_BY_ID = {s.id: s for s in SECTION_TEMPLATES}


def catalog_ids() -> list[str]:
    return [s.id for s in SECTION_TEMPLATES]


def get_section(section_id: str) -> SectionTemplate | None:
    return _BY_ID.get(section_id)


def default_state() -> SowBuilderState:
    """Fresh builder state: catalog order, CCTV basics enabled, no variables."""
    return SowBuilderState(
        section_order=tuple(catalog_ids()),
        enabled_sections=DEFAULT_ENABLED_SECTIONS,
    )
