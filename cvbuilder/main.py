import gradio as gr
import uvicorn

from .main_api import app
from .ui.gradio_app import demo

app = gr.mount_gradio_app(app, demo, path="/ui")


def main():
    print("\n" + "="*50)
    print("🚀 Launching CV Builder")
    print("="*50)
    uvicorn.run(app, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
