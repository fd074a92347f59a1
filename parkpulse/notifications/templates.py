"""Notification templates: one per domain event the parties hear about."""

TEMPLATES = {
    "listing_confirmation": {
        "subject": "Your spot at {location} is listed",
        "body": (
            "Hello,\n\n"
            "Your parking spot has been listed successfully.\n\n"
            "Listing Details:\n"
            "- Location: {location}\n"
            "- Date: {date}\n"
            "- Available: {start_time} to {end_time}\n"
            "- Rate: ${rate_per_hour}/hour\n\n"
            "You will be notified when someone requests a booking.\n\n"
            "Best regards,\n{sender}"
        ),
    },
    "booking_request": {
        "subject": "New booking request for {location} on {date}",
        "body": (
            "Hello,\n\n"
            "{requester_name} ({requester_contact}) would like to book your spot.\n\n"
            "Request Details:\n"
            "- Location: {location}\n"
            "- Date: {date}\n"
            "- Time: {start_time} to {end_time}\n"
            "- Rate: ${rate_per_hour}/hour\n"
            "- Total: ${total_cost}\n\n"
            "Open your dashboard to approve or deny the request.\n\n"
            "Best regards,\n{sender}"
        ),
    },
    "booking_confirmation": {
        "subject": "Booking Confirmed: {location} on {date}",
        "body": (
            "Dear {requester_name},\n\n"
            "Your booking has been confirmed by the owner.\n\n"
            "Booking Details:\n"
            "- Location: {location}\n"
            "- Date: {date}\n"
            "- Time: {start_time} to {end_time}\n"
            "- Total Price: ${total_cost}\n"
            "- Owner contact: {owner_contact}\n\n"
            "Thank you for choosing us!\n\n"
            "Best regards,\n{sender}"
        ),
    },
    "booking_denied": {
        "subject": "Booking request declined: {location}",
        "body": (
            "Dear {requester_name},\n\n"
            "Unfortunately the owner could not accept your request for {location} "
            "on {date} from {start_time} to {end_time}.\n\n"
            "Please try another time or spot.\n\n"
            "Best regards,\n{sender}"
        ),
    },
    "booking_cancellation": {
        "subject": "Booking Canceled: {location} on {date}",
        "body": (
            "Hello,\n\n"
            "{requester_name} has canceled their booking for {location} "
            "on {date} from {start_time} to {end_time}.\n\n"
            "The time slot is available again.\n\n"
            "Best regards,\n{sender}"
        ),
    },
    "owner_cancellation": {
        "subject": "Booking Canceled by Owner: {location}",
        "body": (
            "Dear {requester_name},\n\n"
            "The owner has canceled your booking for {location} "
            "on {date} from {start_time} to {end_time}.\n\n"
            "If you have any questions, you can reach the owner at {owner_contact}.\n\n"
            "Best regards,\n{sender}"
        ),
    },
    "listing_update_cancellation": {
        "subject": "Booking Canceled: availability changed at {location}",
        "body": (
            "Dear {requester_name},\n\n"
            "The owner changed the availability of {location}, and your booking "
            "on {date} from {start_time} to {end_time} no longer fits the new schedule. "
            "It has been canceled.\n\n"
            "We're sorry for the inconvenience. Please look for another time or spot.\n\n"
            "Best regards,\n{sender}"
        ),
    },
}


def render(template: str, **template_vars) -> tuple[str, str]:
    """Return ``(subject, body)`` for a template filled with ``template_vars``.

    Raises:
        KeyError: unknown template or missing variable.
    """
    tmpl = TEMPLATES[template]
    return tmpl["subject"].format(**template_vars), tmpl["body"].format(**template_vars)
