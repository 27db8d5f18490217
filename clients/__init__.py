# Boundary clients
from clients.email_client import MockEmailClient, EmailDeliveryError, OutboundEmail
