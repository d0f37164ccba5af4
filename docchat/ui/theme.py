CUSTOM_CSS = """
<link href="https://fonts.googleapis.com/css2?family=Inter:wght@400;500;600&display=swap"
      rel="stylesheet">
<style>
    * { font-family: 'Inter', sans-serif; }

    body { background: #f5f5f5; min-height: 100vh; }

    .app-container {
        background: white;
        border-radius: 12px;
        box-shadow: 0 2px 8px rgba(0, 0, 0, 0.1);
    }

    .message-user {
        background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
        color: white;
        border-radius: 18px 18px 4px 18px;
    }

    .message-assistant {
        background: #f3f4f6;
        color: #1f2937;
        border-radius: 18px 18px 18px 4px;
    }

    .message-error { border: 1px solid #fca5a5; background: #fef2f2; }

    .file-item { border-radius: 8px; transition: background 0.2s; }
    .file-item.selected { background: #eef2ff; }
    .file-item.disabled { opacity: 0.5; }

    .typing-dot {
        width: 8px; height: 8px;
        background: #667eea;
        border-radius: 50%;
        animation: bounce 1.4s infinite ease-in-out;
    }
    .typing-dot:nth-child(2) { animation-delay: 0.2s; }
    .typing-dot:nth-child(3) { animation-delay: 0.4s; }

    @keyframes bounce {
        0%, 60%, 100% { transform: translateY(0); }
        30% { transform: translateY(-6px); }
    }

    .input-box {
        background: #f9fafb;
        border: 1px solid #e5e7eb;
        border-radius: 12px;
        transition: border-color 0.2s;
    }
    .input-box:focus-within { border-color: #667eea; }

    .send-btn { background: linear-gradient(135deg, #667eea 0%, #764ba2 100%) !important; }
</style>
"""

# Usage bar colours by level
USAGE_COLORS = {"ok": "green", "warning": "orange", "critical": "red"}
