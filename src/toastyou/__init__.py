"""A Toast to You: weekly reflection toasts and achievement badges."""
