from midpoint.services.meetings import MeetingService, MeetingState, PlaceSuggestion

__all__ = ["MeetingService", "MeetingState", "PlaceSuggestion"]
