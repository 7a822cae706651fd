"""Role-based navigation, menu cards and small presentation helpers."""

from datetime import date
from typing import Any, Dict, List, Optional

from ..models.common import MenuCard, NavItem, ScheduleCard, UserRole, parse_date


PATIENT_NAV = [
    NavItem(href="/dashboard", label="Dashboard", icon="layout-dashboard"),
    NavItem(href="/education", label="Edukasi", icon="book-open"),
    NavItem(href="/medications", label="Jadwal Obat", icon="pill"),
    NavItem(href="/health-log", label="Catatan Kesehatan", icon="clipboard-list"),
    NavItem(href="/lab-results", label="Hasil Lab", icon="image"),
    NavItem(href="/control-schedule", label="Jadwal Kontrol", icon="calendar"),
    NavItem(href="/profile", label="Edit Akun", icon="users"),
]

ADMIN_NAV = [
    NavItem(href="/dashboard", label="Dashboard", icon="layout-dashboard"),
    NavItem(href="/patients", label="Pasien", icon="users"),
    NavItem(href="/education", label="Edukasi", icon="book-open"),
    NavItem(href="/manage-schedules", label="Kelola Jadwal", icon="pill"),
    NavItem(href="/staff", label="Tenaga Medis", icon="briefcase"),
    NavItem(href="/profile", label="Edit Akun", icon="users"),
]

PATIENT_QUICK_ACTIONS = [
    MenuCard(
        title="Jadwal Minum Obat",
        description="Lihat jadwal minum obat",
        image="main_menu_jadwal_obat.svg",
        href="/medications",
    ),
    MenuCard(
        title="Catatan Kesehatan",
        description="Buat catatan",
        image="main_menu_catatan_kesehatan.svg",
        href="/health-log",
    ),
    MenuCard(
        title="Upload Hasil Lab",
        description="Upload hasil pemeriksaan",
        image="main_menu_hasil_lab.svg",
        href="/lab-results",
    ),
    MenuCard(
        title="Jadwal Kontrol",
        description="Lihat jadwal kontrol",
        image="main_menu_jadwal_kontrol.svg",
        href="/control-schedule",
    ),
]

ADMIN_MAIN_MENU = [
    MenuCard(
        title="Daftar Pasien",
        description="Kelola data pasien",
        image="main_menu_pasien.svg",
        href="/patients",
    ),
    MenuCard(
        title="Kelola Jadwal",
        description="Atur jadwal pemeriksaan",
        image="main_menu_jadwal.svg",
        href="/manage-schedules",
    ),
    MenuCard(
        title="Edukasi",
        description="Materi edukasi",
        image="main_menu_edukasi.svg",
        href="/education",
    ),
    MenuCard(
        title="Tenaga Medis",
        description="Data dokter & perawat",
        image="main_menu_medis.svg",
        href="/staff",
    ),
]


def navigation_for(role: UserRole) -> List[NavItem]:
    """Sidebar items for a role."""
    return list(ADMIN_NAV if role == UserRole.ADMIN else PATIENT_NAV)


def menu_for(role: UserRole) -> List[MenuCard]:
    return list(ADMIN_MAIN_MENU if role == UserRole.ADMIN else PATIENT_QUICK_ACTIONS)


def role_label(role: UserRole) -> str:
    return "Tenaga Medis" if role == UserRole.ADMIN else "Pasien"


def greeting(hour: int) -> str:
    """Time-of-day greeting."""
    if hour < 12:
        return "Selamat Pagi"
    if hour < 15:
        return "Selamat Siang"
    if hour < 18:
        return "Selamat Sore"
    return "Selamat Malam"


MONTH_NAMES = (
    "Januari", "Februari", "Maret", "April", "Mei", "Juni",
    "Juli", "Agustus", "September", "Oktober", "November", "Desember",
)


def long_date(value: Any) -> str:
    """Date as "2 Mei 2024"."""
    day = parse_date(value)
    return f"{day.day} {MONTH_NAMES[day.month - 1]} {day.year}"


def control_status(scheduled_date: Any, today: date) -> str:
    """Classify a control visit as today, past or upcoming."""
    day = parse_date(scheduled_date)
    if day == today:
        return "today"
    if day < today:
        return "past"
    return "upcoming"


def schedule_card(kind: str, schedule: Dict[str, Any], patient_name: Optional[str] = None) -> ScheduleCard:
    """Card view of a medication ("med") or control ("control") schedule."""
    if kind == "med":
        return ScheduleCard(
            type="med",
            title=schedule["medication_name"],
            patient_name=patient_name,
            subtitle=f"{schedule['schedule_time'][:5]} • {schedule['dosage']}",
        )
    return ScheduleCard(
        type="control",
        title=long_date(schedule["scheduled_date"]),
        patient_name=patient_name,
        subtitle=schedule["scheduled_time"][:5],
        location=schedule.get("location"),
    )
