#!/usr/bin/env python3
"""
Interactive Client for Mini-Redis

A command-line REPL for manually exercising the Mini-Redis engine over a
single persistent connection.

Usage:
    python scripts/client.py                  # Connect to localhost:6379
    python scripts/client.py --host 1.2.3.4   # Connect to specific host
    python scripts/client.py --port 7000      # Connect to specific port

The engine serves one client at a time, so other clients wait until this
session ends with QUIT or exit.
"""

import argparse
import socket
import sys

# Enable command history with arrow keys (works on Unix systems)
try:
    import readline  # noqa: F401
except ImportError:
    pass  # readline not available on Windows by default


class ReplConnection:
    """Persistent TCP connection to the engine."""

    def __init__(self, host: str, port: int, timeout: float = 5.0):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.socket = None

    def connect(self) -> bool:
        """Connect to the server."""
        try:
            self.socket = socket.create_connection((self.host, self.port), timeout=self.timeout)
            return True
        except OSError as e:
            print(f"Connection error: {e}")
            self.socket = None
            return False

    def disconnect(self):
        """Disconnect from the server."""
        if self.socket:
            self.socket.close()
            self.socket = None

    def send_command(self, command: str) -> str:
        """Send a command and receive its single reply line."""
        if not self.socket:
            return "ERROR: Not connected"

        try:
            self.socket.sendall(f"{command}\n".encode('utf-8'))

            response = b''
            while not response.endswith(b'\n'):
                chunk = self.socket.recv(4096)
                if not chunk:
                    self.disconnect()
                    return "ERROR: Connection closed by server"
                response += chunk

            return response.decode('utf-8', errors='replace').strip()

        except socket.timeout:
            return "ERROR: Request timed out (another client may be connected)"
        except OSError as e:
            self.disconnect()
            return f"ERROR: {e}"


def print_help():
    """Print help message."""
    print("""
Mini-Redis Commands:
--------------------
  PING                      Health check (replies PONG)
  SET <key> <value>         Store a value (may contain spaces)
  GET <key>                 Retrieve the value for a key (NULL if absent)
  DEL <key>                 Delete a key (OK or NOT FOUND)
  KEYS                      List all keys as a JSON array
  STATS                     Key count and accounted memory as JSON
  QUIT                      Close connection and exit

Client Commands:
----------------
  help                      Show this help message
  exit                      Exit the client
  reconnect                 Reconnect to the server
  status                    Show connection status

Examples:
---------
  SET greeting Hello, World!
  GET greeting
  DEL greeting
""")


def main():
    parser = argparse.ArgumentParser(
        description="Interactive client for Mini-Redis"
    )
    parser.add_argument(
        "--host",
        type=str,
        default="localhost",
        help="Server host (default: localhost)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=6379,
        help="Server port (default: 6379)"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=5.0,
        help="Socket timeout in seconds (default: 5.0)"
    )

    args = parser.parse_args()

    print("Mini-Redis Client")
    print("=================")
    print(f"Connecting to {args.host}:{args.port}...")

    client = ReplConnection(args.host, args.port, args.timeout)

    if not client.connect():
        print("Failed to connect. Is the server running?")
        print(f"  Try: python -m mini_redis.server {args.port}")
        sys.exit(1)

    print("Connected! Type 'help' for commands.\n")

    try:
        while True:
            try:
                command = input(">>> ").strip()

                if not command:
                    continue

                lower_cmd = command.lower()

                if lower_cmd == "help":
                    print_help()
                    continue

                if lower_cmd == "exit":
                    client.send_command("QUIT")
                    print("Goodbye!")
                    break

                if lower_cmd == "reconnect":
                    client.disconnect()
                    if client.connect():
                        print("Reconnected!")
                    else:
                        print("Reconnection failed.")
                    continue

                if lower_cmd == "status":
                    status = "Connected" if client.socket else "Disconnected"
                    print(f"Status: {status}")
                    print(f"Server: {args.host}:{args.port}")
                    continue

                response = client.send_command(command)
                print(response)

                if response == "BYE" and lower_cmd.split()[0] == "quit":
                    print("Goodbye!")
                    break

            except EOFError:
                print("\nGoodbye!")
                break

    except KeyboardInterrupt:
        print("\n\nInterrupted. Goodbye!")
    finally:
        client.disconnect()


if __name__ == "__main__":
    main()
