"""
Object detection for NailongWatch.

- **tensor_codec.py**: image -> normalized model tensor, raw rows -> detections
- **suppression.py**: IoU helpers and class-agnostic greedy NMS
- **compositor.py**: box rendering and opaque merge onto the source image
- **inference.py**: ``InferenceEngine`` protocol and the ONNX Runtime engine
- **detector.py**: async pipeline wiring the pieces together
"""
