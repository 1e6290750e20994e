from django.dispatch import Signal

# Signal raises when customer status changed
# Params:
# - instance: Customer model instance
# - old_status: previous CustomerStatus value
# - new_status: current CustomerStatus value
customer_status_changed = Signal()
