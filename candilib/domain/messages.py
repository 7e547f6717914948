"""User-facing messages returned by the booking API."""

SAVE_RESA_WITH_MAIL_SENT = (
    "Votre réservation a bien été prise en compte. "
    "Un courriel de convocation vous a été envoyé."
)
SAVE_RESA_WITH_NO_MAIL_SENT = (
    "Votre réservation a bien été prise en compte. "
    "Cependant, le courriel de convocation n'a pas pu vous être envoyé."
)
CANCEL_RESA_WITH_MAIL_SENT = (
    "Votre annulation a bien été prise en compte. "
    "Un courriel de confirmation vous a été envoyé."
)
CANCEL_RESA_WITH_NO_MAIL_SENT = (
    "Votre annulation a bien été prise en compte. "
    "Cependant, le courriel de confirmation n'a pas pu vous être envoyé."
)
SAME_RESA_ASKED = "Vous avez déjà réservé cette place."
NO_PLACE_AVAILABLE = "Il n'y a pas de place pour ce créneau"
CAN_BOOK_AFTER = "Vous pourrez sélectionner une nouvelle date à partir du "
CANDIDAT_DATE_ETG_KO = "Votre date de réussite à l'ETG ne vous permet pas de réserver au-delà du "
CANDIDAT_NOT_FOUND = "Candidat introuvable"
CENTRE_NOT_FOUND = "Centre introuvable"
NOT_CONNECTED = "Vous n'êtes pas connecté"
NO_RESERVATION = "Vous n'avez pas de réservation"
NO_CANDIDAT_TO_CANCEL = "Il n'y a pas de candidat pour annuler la réservation"
INTERNAL_ERROR = "Une erreur est survenue, veuillez réessayer plus tard."
