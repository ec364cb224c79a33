FRIENDLY_MESSAGES = {
    "ConnectionError": "Unable to connect to a required service. Please try again later.",
    "TimeoutError": "The request took too long. Please try again later.",
    "IntegrityError": "The request conflicts with existing data.",
    "OperationalError": "Temporary issue while accessing data. Please try again shortly.",
    "DatabaseError": "Temporary issue while accessing data. Please try again shortly.",
    "StripeError": "The payment provider could not process the request.",
    "ValueError": "Invalid data received. Please check your input and try again.",
    "KeyError": "Some required information is missing.",
}


def get_friendly_message(error: Exception) -> str:
    for cls in type(error).__mro__:
        msg = FRIENDLY_MESSAGES.get(cls.__name__)
        if msg:
            return msg
    return "Something went wrong on our end. Please try again."
