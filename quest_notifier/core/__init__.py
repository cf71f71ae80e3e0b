"""Infrastructure: configuration, logging, events, Firebase and the service container."""
