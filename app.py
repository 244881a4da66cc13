"""
Launcher
Starts the backend API and the Streamlit dashboard side by side.

    python app.py
"""

import atexit
import os
import signal
import subprocess
import sys
import time
import webbrowser

import requests

BACKEND_PORT = 8000
FRONTEND_PORT = 8501

_processes = []


def cleanup():
    for proc in _processes:
        if proc.poll() is not None:
            continue
        try:
            if sys.platform == "win32":
                subprocess.run(["taskkill", "/F", "/T", "/PID", str(proc.pid)], capture_output=True)
            else:
                os.killpg(os.getpgid(proc.pid), signal.SIGTERM)
        except (OSError, subprocess.SubprocessError):
            proc.kill()


def signal_handler(signum, frame):
    print("\nShutting down...")
    cleanup()
    sys.exit(0)


def wait_for_backend(timeout: float = 15.0) -> bool:
    deadline = time.time() + timeout
    while time.time() < deadline:
        try:
            if requests.get(f"http://localhost:{BACKEND_PORT}/health", timeout=1).ok:
                return True
        except requests.exceptions.RequestException:
            pass
        time.sleep(0.5)
    return False


def spawn(args, cwd):
    kwargs = {"start_new_session": True} if sys.platform != "win32" else {}
    proc = subprocess.Popen(args, cwd=cwd, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL, **kwargs)
    _processes.append(proc)
    return proc


def main():
    print("\nStarting Garden Monitoring...\n")

    atexit.register(cleanup)
    signal.signal(signal.SIGINT, signal_handler)
    if sys.platform != "win32":
        signal.signal(signal.SIGTERM, signal_handler)

    root = os.path.dirname(os.path.abspath(__file__))

    print("Starting backend...")
    backend = spawn(
        [sys.executable, "-m", "uvicorn", "main:create_app", "--factory", "--port", str(BACKEND_PORT)],
        os.path.join(root, "backend"),
    )
    if not wait_for_backend():
        print("Backend did not become healthy; continuing anyway")

    print("Starting frontend...")
    frontend = spawn(
        [sys.executable, "-m", "streamlit", "run", "app.py", "--server.headless", "true",
         "--server.port", str(FRONTEND_PORT)],
        os.path.join(root, "frontend"),
    )

    print(f"\nBackend:  http://localhost:{BACKEND_PORT}/docs")
    print(f"Frontend: http://localhost:{FRONTEND_PORT}")
    print("\nPress Ctrl+C to stop\n")

    webbrowser.open(f"http://localhost:{FRONTEND_PORT}")

    try:
        while True:
            if backend.poll() is not None:
                print("Backend stopped unexpectedly")
                break
            if frontend.poll() is not None:
                print("Frontend stopped unexpectedly")
                break
            time.sleep(1)
    except KeyboardInterrupt:
        pass
    finally:
        cleanup()


if __name__ == "__main__":
    main()
