from speakr_transcriber.handlers.command_handler import CommandHandler

__all__ = ["CommandHandler"]
