"""starhub: presence, chat relay and call signaling hub for a two-party messenger."""
