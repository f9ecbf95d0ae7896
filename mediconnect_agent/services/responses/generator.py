"""
WhatsApp reply texts.

Pure formatting: every method maps domain values to a message string using
WhatsApp markup (``*bold*``, ``_italic_``), emoji and numbered lists.
"""

from typing import List, Optional

from ...core.models import (
    AppointmentSummary,
    DoctorSearchResult,
    QueueStatus,
    RecordSummary,
    SlotOption,
)
from ...core.enums import Language
from ...utils.date import LocalClock, format_display_date, format_record_date, format_time_12h

_KEYCAPS = ["1️⃣", "2️⃣", "3️⃣", "4️⃣", "5️⃣", "6️⃣", "7️⃣", "8️⃣", "9️⃣", "🔟"]
_LANGUAGE_LABELS = {
    Language.ENGLISH: "English",
    Language.HINDI: "हिंदी (Hindi)",
    Language.TELUGU: "తెలుగు (Telugu)",
    Language.TAMIL: "தமிழ் (Tamil)",
}


def _keycap(index: int) -> str:
    """Emoji number for a 0-based index, falling back to ``N.`` past ten."""
    return _KEYCAPS[index] if index < len(_KEYCAPS) else f"{index + 1}."


def _money(amount: float) -> str:
    return f"₹{amount:g}"


class ResponseGenerator:
    """Builds user-facing messages. Dates are relative to ``clock``'s today."""

    def __init__(self, clock: LocalClock):
        self.clock = clock

    def _date(self, value: str) -> str:
        return format_display_date(value, self.clock.today())

    def _when(self, day: str, time: str) -> str:
        return f"{self._date(day)} at {format_time_12h(time)}"

    # Greeting & help

    def greeting(self) -> str:
        return (
            "👋 Hi! I'm your MediConnect health assistant.\n\n"
            "I can help you:\n"
            "🔍 Find doctors by specialty\n"
            "📅 Book appointments\n"
            "📋 View your medical records\n"
            "🏥 Check queue status\n\n"
            "Just tell me what you need! For example:\n"
            '• "I need a cardiologist"\n'
            '• "Book appointment with Dr. Sharma"\n'
            '• "My records"\n'
            '• "Help"'
        )

    def help(self) -> str:
        return (
            "❓ *How can I help?*\n\n"
            "📚 *Quick commands:*\n"
            '• *"I need a [specialty]"* — Find doctors\n'
            '• *"My appointments"* — View upcoming\n'
            '• *"Cancel appointment"* — Cancel booking\n'
            '• *"My records"* — Medical records\n'
            '• *"Queue status"* — Today\'s queue\n'
            '• *"Update profile"* — Change your info\n\n'
            "📞 *Human support:*\n"
            "Email: support@mediconnect.com"
        )

    def unclear(self) -> str:
        return (
            "🤔 I didn't quite understand that.\n\n"
            "Try saying:\n"
            '• "I need a cardiologist"\n'
            '• "Book appointment"\n'
            '• "My records"\n'
            '• "Help"'
        )

    def error(self) -> str:
        return (
            "😕 Something went wrong on my end. Please try again in a moment.\n\n"
            'Type *"help"* if the issue persists.'
        )

    def cancel_flow(self) -> str:
        return (
            "↩️ Okay, cancelled. Back to the main menu.\n\n"
            'What would you like to do? Type *"help"* to see options.'
        )

    # Registration

    def welcome_new_user(self) -> str:
        return (
            "👋 Welcome to MediConnect!\n\n"
            "I'll help you book doctor appointments across hospitals in your city.\n\n"
            "Let's get you set up in 30 seconds.\n\n"
            "*What's your name?*"
        )

    def invalid_name(self) -> str:
        return "Please enter your full name."

    def ask_age(self, name: str) -> str:
        return f"Nice to meet you, *{name}*! 😊\n\nHow old are you? _(just the number, e.g. 28)_"

    def invalid_age(self) -> str:
        return "Please enter a valid age (number only, e.g. 28)."

    def ask_language(self) -> str:
        choices = Language.registration_choices()
        lines = "\n".join(f"{_keycap(i)} {_LANGUAGE_LABELS[lang]}" for i, lang in enumerate(choices))
        options = ", ".join(str(i + 1) for i in range(len(choices) - 1))
        return (
            f"Almost done!\n\nWhich language do you prefer?\n\n{lines}\n\n"
            f"Reply with {options}, or {len(choices)}"
        )

    def invalid_language(self) -> str:
        return "Please reply with 1, 2, 3, or 4."

    def ask_location(self) -> str:
        return (
            "Last step — share your location so I can find hospitals near you.\n\n"
            "📍 *Option 1:* Use WhatsApp's location sharing button\n"
            '📝 *Option 2:* Just type your area/city (e.g. "Banjara Hills, Hyderabad")'
        )

    def registration_complete(self, name: str) -> str:
        return (
            f"✅ You're all set, *{name}*!\n\n"
            "You can now:\n"
            '🔍 Say *"I need a cardiologist"* to find doctors\n'
            "📅 Book appointments instantly\n"
            '📋 Say *"my records"* to view medical records\n'
            '🏥 Say *"queue status"* before your appointment\n\n'
            "What would you like to do?"
        )

    # Search & booking

    def doctor_list(self, doctors: List[DoctorSearchResult]) -> str:
        if not doctors:
            return (
                "😕 Sorry, I couldn't find any doctors matching your request.\n\n"
                "Try:\n"
                "• A different specialty\n"
                "• Broader location\n"
                '• "Help" for more options'
            )

        plural = "s" if len(doctors) > 1 else ""
        msg = f"Found *{len(doctors)} doctor{plural}*:\n\n"
        for i, doc in enumerate(doctors):
            promoted = "⭐ " if doc.hospital and doc.hospital.promotion_level else ""
            if doc.next_available_slot:
                slot = doc.next_available_slot
                availability = f"📅 Next: {self._when(slot.date, slot.time)}"
            else:
                availability = "❌ No slots available soon"
            msg += f"*{i + 1}. Dr. {doc.name}*\n"
            msg += f"   {promoted}{doc.specialization} | ⭐ {doc.rating:g}\n"
            msg += f"   🏥 {doc.hospital_name}\n"
            msg += f"   💰 {_money(doc.consultation_fee)}\n"
            msg += f"   {availability}\n\n"
        msg += f"Reply with a number (1-{len(doctors)}) to book"
        return msg

    def no_slots(self, doctor_name: str, days: int = 7) -> str:
        return (
            f"😕 Dr. {doctor_name} has no available slots in the next {days} days.\n\n"
            'Say *"I need a doctor"* to see other doctors, or try a different date.'
        )

    def slot_list(self, doctor: DoctorSearchResult, slots: List[SlotOption]) -> str:
        msg = f"*Dr. {doctor.name}* — {doctor.specialization}\n"
        msg += f"🏥 {doctor.hospital_name}\n"
        msg += f"⭐ {doctor.rating:g} | 💰 {_money(doctor.consultation_fee)}\n\n"
        msg += "*Available slots:*\n\n"
        for i, slot in enumerate(slots):
            msg += f"{_keycap(i)} {self._when(slot.date, slot.time)}\n"
        msg += "\nReply with slot number"
        return msg

    def confirm_booking(self, doctor: DoctorSearchResult, slot: SlotOption) -> str:
        return (
            "*Confirm your booking?*\n\n"
            f"👨‍⚕️ Dr. {doctor.name}\n"
            f"🏥 {doctor.hospital_name}\n"
            f"📅 {self._when(slot.date, slot.time)}\n"
            f"💰 {_money(doctor.consultation_fee)}\n\n"
            "Reply *YES* to confirm or *NO* to cancel"
        )

    def confirm_reprompt(self) -> str:
        return "Please reply *YES* to confirm or *NO* to cancel."

    def booking_success(
        self, doctor: DoctorSearchResult, slot: SlotOption, confirmation_code: str
    ) -> str:
        hospital = doctor.hospital
        where = (hospital.address or hospital.city or "") if hospital else ""
        return (
            "✅ *Appointment Confirmed!*\n\n"
            "📋 *Your Details:*\n"
            f"👨‍⚕️ Dr. {doctor.name} - {doctor.specialization}\n"
            f"🏥 {doctor.hospital_name}\n"
            f"📍 {where}\n"
            f"📅 {self._when(slot.date, slot.time)}\n"
            f"💰 Fee: {_money(doctor.consultation_fee)}\n"
            f"🔖 Code: *{confirmation_code}*\n\n"
            "I'll remind you 1 day before and 1 hour before your appointment.\n\n"
            'Reply *"queue status"* on the day to check your position.'
        )

    def booking_failed(self, reason: str) -> str:
        return f"❌ Booking failed: {reason}\n\nPlease try again or choose a different slot."

    def selection_reprompt(self, count: int) -> str:
        return f"Please reply with a number between 1 and {count}."

    # Records

    def record_list(self, records: List[RecordSummary]) -> str:
        if not records:
            return (
                "📋 You don't have any medical records yet.\n\n"
                "Your records will appear here after your first consultation."
            )
        msg = "📋 *Your Medical Records:*\n\n"
        for i, rec in enumerate(records):
            msg += f"{_keycap(i)} {rec.display_title}\n"
            msg += f"   📅 {format_record_date(rec.created_at)} — 🏥 {rec.hospital_name}\n\n"
        msg += "Reply with number to view securely 🔒"
        return msg

    def secure_record_link(self, title: str, url: str, otp: str, ttl_minutes: int = 5) -> str:
        return (
            "🔒 *Secure Access*\n\n"
            f"To view your *{title}*:\n\n"
            f"👆 Tap this link:\n{url}\n\n"
            f"🔑 Your OTP: *{otp}*\n\n"
            f"⏰ Expires in {ttl_minutes} minutes"
        )

    # Queue

    def queue_status(self, appointment_time: str, status: QueueStatus) -> str:
        if status.current_delay > 15:
            status_line = f"⚠️ Doctor is running ~{status.current_delay} mins late"
        else:
            status_line = "✅ Roughly on schedule"
        ahead = status.patients_ahead
        return (
            "📊 *Queue Status*\n\n"
            f"Your appointment: {format_time_12h(appointment_time)}\n\n"
            f"├─ 👥 {ahead} patient{'' if ahead == 1 else 's'} ahead\n"
            f"├─ ⏱️ Est. wait: {status.estimated_wait_minutes} mins\n"
            f"└─ {status_line}\n\n"
            "I'll notify you when you're next."
        )

    def no_appointment_today(self) -> str:
        return "📅 You don't have any appointments today.\n\nSay *\"I need a doctor\"* to book one!"

    # Appointments & cancellation

    def upcoming_appointments(self, appointments: List[AppointmentSummary]) -> str:
        if not appointments:
            return "📅 No upcoming appointments.\n\nSay *\"I need a doctor\"* to book one!"
        msg = "📅 *Your Upcoming Appointments:*\n\n"
        for i, appt in enumerate(appointments):
            msg += f"{i + 1}. {self._when(appt.appointment_date, appt.appointment_time)}\n"
            msg += f"   Dr. {appt.doctor_name or '-'} @ {appt.hospital_name or '-'}\n\n"
        return msg.rstrip()

    def no_appointments_to_cancel(self) -> str:
        return "📅 You have no upcoming appointments to cancel."

    def cancel_selection(self, appointments: List[AppointmentSummary]) -> str:
        msg = "📅 *Your Upcoming Appointments:*\n\n"
        for i, appt in enumerate(appointments):
            msg += f"{_keycap(i)} {self._when(appt.appointment_date, appt.appointment_time)}\n"
            msg += f"   Dr. {appt.doctor_name or 'Unknown'}\n\n"
        msg += "Reply with number to cancel, or *CANCEL* to go back"
        return msg

    def invalid_cancel_selection(self) -> str:
        return "Invalid selection. Please reply with a valid number."

    def cancellation_success(self) -> str:
        return (
            "✅ *Appointment Cancelled*\n\n"
            "Your appointment has been cancelled and the slot is now free.\n\n"
            'Need to rebook? Just say *"I need a doctor"*'
        )

    def cancellation_failed(self, reason: Optional[str]) -> str:
        return f"❌ Could not cancel: {reason or 'Unknown error'}"

    # Reminders

    def reminder_24h(self, appointment_time: str, doctor_name: Optional[str], hospital_name: Optional[str]) -> str:
        return (
            f"⏰ *Reminder* — You have an appointment *tomorrow* at *{format_time_12h(appointment_time)}*\n\n"
            f"👨‍⚕️ Dr. {doctor_name or 'Doctor'}\n"
            f"🏥 {hospital_name or 'Hospital'}\n\n"
            'Reply *"cancel appointment"* if you need to cancel.'
        )

    def reminder_1h(
        self,
        appointment_time: str,
        doctor_name: Optional[str],
        hospital_name: Optional[str],
        hospital_address: Optional[str],
    ) -> str:
        return (
            "🔔 *1-hour reminder* — Your appointment is in ~1 hour!\n\n"
            f"👨‍⚕️ Dr. {doctor_name or 'Doctor'} at {format_time_12h(appointment_time)}\n"
            f"🏥 {hospital_name or 'Hospital'}\n"
            f"📍 {hospital_address or ''}\n\n"
            'Reply *"queue status"* to check your position in the queue.'
        )
