#!/usr/bin/env python3
"""
Chess Puzzle Bot - Entry Point

Telegram bot that posts the chess.com daily puzzle to subscribed chats.
The actual implementation is in the chesspuzzlebot package.
"""

if __name__ == "__main__":
    from chesspuzzlebot import main
    main()
